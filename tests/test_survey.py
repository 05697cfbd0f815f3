import pytest

from app.core.exceptions import ConflictError
from app.db.indexes import create_indexes
from app.main import app
from app.models.chat import Chat, Message
from app.services import chat_service
from app.services.gemini_service import get_gemini_service
from conftest import FakeGemini, TEST_USER, run


def send(client, message):
    return client.post("/api/v1/survey/messages", json={"message": message})


def test_first_turn_creates_chat(client, gemini, db):
    response = send(client, "Hi, I'm looking for a quiet roommate")

    assert response.status_code == 200
    chat = response.json()
    assert chat["user_id"] == TEST_USER.uid
    assert [m["role"] for m in chat["messages"]] == ["user", "assistant"]
    assert chat["messages"][0]["content"] == "Hi, I'm looking for a quiet roommate"
    assert chat["messages"][1]["content"] == "What does a typical weekday look like for you?"
    assert chat["version"] == 1

    stored = run(db["chats"].find_one({"user_id": TEST_USER.uid}))
    assert len(stored["messages"]) == 2


def test_extraction_and_reply_see_same_history(client, gemini):
    send(client, "first")
    send(client, "second")

    expected = [
        ("user", "first"),
        ("assistant", "What does a typical weekday look like for you?"),
        ("user", "second"),
    ]
    assert gemini.extract_calls[-1] == expected
    assert gemini.reply_calls[-1] == expected


def test_turns_append_in_order(client, gemini):
    for text in ("one", "two", "three"):
        send(client, text)

    chat = client.get("/api/v1/survey").json()
    contents = [m["content"] for m in chat["messages"] if m["role"] == "user"]
    assert contents == ["one", "two", "three"]
    assert len(chat["messages"]) == 6
    assert chat["version"] == 3
    assert len({m["id"] for m in chat["messages"]}) == 6


def test_characteristics_merge_across_turns(client, db, user_doc):
    fake = FakeGemini(extractions=[{"budget": "$1000"}, {"pets": "one cat", "budget": "$1200"}])
    app.dependency_overrides[get_gemini_service] = lambda: fake

    send(client, "My budget is about a thousand")
    send(client, "Actually up to 1200, and I have a cat")

    doc = user_doc()
    assert doc["characteristics"] == {"budget": "$1200", "pets": "one cat"}
    assert doc.get("survey_completed") is not True


def test_survey_completes_when_required_characteristics_known(client, user_doc):
    fake = FakeGemini(extractions=[{
        "budget": "$1000",
        "move_in_date": "August",
        "sleep_schedule": "night owl",
        "cleanliness": "very tidy",
        "pets": "none",
        "smoking": "no",
    }])
    app.dependency_overrides[get_gemini_service] = lambda: fake

    send(client, "Here's everything about me")

    assert user_doc()["survey_completed"] is True
    assert client.get("/api/v1/setup/status").json()["survey_completed"] is True


def test_failed_reply_writes_nothing(client, db, user_doc):
    fake = FakeGemini(extractions=[{"budget": "$900"}], fail_reply=True)
    app.dependency_overrides[get_gemini_service] = lambda: fake

    response = send(client, "My budget is 900")

    assert response.status_code == 502
    assert response.json()["code"] == "EXTERNAL_SERVICE_ERROR"
    assert run(db["chats"].find_one({"user_id": TEST_USER.uid})) is None
    assert user_doc() is None


def test_empty_message_opens_survey(client, gemini):
    response = client.post("/api/v1/survey/messages", json={})

    chat = response.json()
    assert [m["role"] for m in chat["messages"]] == ["assistant"]
    assert gemini.extract_calls == []
    assert gemini.reply_calls == [[]]


def test_empty_message_on_existing_chat_is_a_no_op(client, gemini):
    send(client, "hello")
    calls_before = len(gemini.reply_calls)

    chat = client.post("/api/v1/survey/messages", json={"message": "   "}).json()

    assert len(chat["messages"]) == 2
    assert len(gemini.reply_calls) == calls_before


def test_recent_messages_returns_last_five(client, gemini):
    for text in ("one", "two", "three"):
        send(client, text)

    chat = client.get("/api/v1/survey/messages/recent").json()

    assert len(chat["messages"]) == 5
    assert chat["messages"][0]["role"] == "assistant"
    assert chat["messages"][-2]["content"] == "three"


def test_survey_not_found(client):
    assert client.get("/api/v1/survey").status_code == 404
    assert client.get("/api/v1/survey/messages/recent").status_code == 404


def test_messages_with_same_timestamp_keep_insertion_order():
    chat = Chat(user_id="u", messages=[
        Message(role="user", content="a", created_at=1000),
        Message(role="assistant", content="b", created_at=1000),
        Message(role="user", content="c", created_at=999),
    ])

    assert [m.content for m in chat.ordered_messages()] == ["c", "a", "b"]


def test_append_never_goes_back_in_time():
    chat = Chat(user_id="u", messages=[Message(role="user", content="a", created_at=10 ** 15)])

    message = chat.append("assistant", "b")

    assert message.created_at == 10 ** 15
    assert [m.content for m in chat.ordered_messages()] == ["a", "b"]


def test_stale_save_raises_conflict(db):
    chat = run(chat_service.get_or_start_chat(TEST_USER.uid))
    chat.append("user", "hello")
    run(chat_service.save_chat(chat))

    first = run(chat_service.get_chat(TEST_USER.uid))
    second = run(chat_service.get_chat(TEST_USER.uid))

    first.append("user", "from request one")
    run(chat_service.save_chat(first))

    second.append("user", "from request two")
    with pytest.raises(ConflictError):
        run(chat_service.save_chat(second))

    stored = run(chat_service.get_chat(TEST_USER.uid))
    assert [m.content for m in stored.messages] == ["hello", "from request one"]
    assert stored.version == 2


def test_concurrent_first_saves_conflict(db):
    run(create_indexes())

    first = run(chat_service.get_or_start_chat(TEST_USER.uid))
    second = run(chat_service.get_or_start_chat(TEST_USER.uid))
    first.append("user", "first request")
    second.append("user", "second request")

    run(chat_service.save_chat(first))
    with pytest.raises(ConflictError):
        run(chat_service.save_chat(second))

    stored = run(chat_service.get_chat(TEST_USER.uid))
    assert stored.chat_id == first.chat_id
    assert [m.content for m in stored.messages] == ["first request"]


class RacingGemini(FakeGemini):
    """Another request starts the chat while this turn waits on the reply."""

    async def generate_reply(self, history):
        rival = await chat_service.get_or_start_chat(TEST_USER.uid)
        rival.append("user", "from the other tab")
        await chat_service.save_chat(rival)
        return await super().generate_reply(history)


def test_first_turn_race_returns_conflict(client, db, user_doc):
    run(create_indexes())
    fake = RacingGemini(extractions=[{"budget": "$900"}])
    app.dependency_overrides[get_gemini_service] = lambda: fake

    response = send(client, "My budget is 900")

    assert response.status_code == 409
    assert response.json()["code"] == "CONFLICT"

    stored = run(db["chats"].find_one({"user_id": TEST_USER.uid}))
    assert [m["content"] for m in stored["messages"]] == ["from the other tab"]
    assert user_doc() is None
