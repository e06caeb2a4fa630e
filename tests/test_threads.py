from brain.telegram.threads import ThreadHistory, ThreadMessage, build_thread_prompt

CHAT = 100


def _msg(message_id: int, text: str, *, sender: str = "alice", from_bot: bool = False) -> ThreadMessage:
    return ThreadMessage(message_id=message_id, sender=sender, text=text, from_bot=from_bot)


def test_replies_share_the_root_of_the_chain() -> None:
    history = ThreadHistory()
    assert history.record(CHAT, _msg(1, "first")) == 1
    assert history.record(CHAT, _msg(2, "reply", from_bot=True), reply_to_id=1) == 1
    assert history.record(CHAT, _msg(3, "reply to reply"), reply_to_id=2) == 1
    assert [message.message_id for message in history.messages(CHAT, 1)] == [1, 2, 3]
    assert history.knows(CHAT, 3)
    assert not history.knows(CHAT, 4)


def test_chats_are_kept_apart() -> None:
    history = ThreadHistory()
    history.record(CHAT, _msg(1, "in chat 100"))
    history.record(200, _msg(1, "in chat 200"))
    assert [message.text for message in history.messages(CHAT, 1)] == ["in chat 100"]


def test_recording_twice_keeps_one_copy() -> None:
    history = ThreadHistory()
    history.record(CHAT, _msg(1, "first"))
    history.record(CHAT, _msg(1, "first"))
    assert len(history.messages(CHAT, 1)) == 1


def test_thread_keeps_most_recent_messages_only() -> None:
    history = ThreadHistory(limit=3)
    history.record(CHAT, _msg(1, "m1"))
    for message_id in range(2, 7):
        history.record(CHAT, _msg(message_id, f"m{message_id}"), reply_to_id=message_id - 1)
    assert [message.text for message in history.messages(CHAT, 1)] == ["m4", "m5", "m6"]


def test_oldest_threads_are_evicted() -> None:
    history = ThreadHistory(max_threads=2)
    history.record(CHAT, _msg(1, "a"))
    history.record(CHAT, _msg(2, "b"))
    history.record(CHAT, _msg(3, "c"))
    assert history.messages(CHAT, 1) == []
    assert not history.knows(CHAT, 1)
    assert history.knows(CHAT, 3)


def test_render_labels_bot_and_strips_mentions() -> None:
    history = ThreadHistory()
    history.record(CHAT, _msg(1, "@brain_bot /draft rally recap"))
    history.record(CHAT, _msg(2, "Variant 1: ...", from_bot=True), reply_to_id=1)
    history.record(CHAT, _msg(3, "@brain_bot", sender="bob"), reply_to_id=2)
    history.record(CHAT, _msg(4, "make it shorter", sender="bob"), reply_to_id=3)

    transcript = history.render(CHAT, 1, bot_username="brain_bot")

    assert transcript == "alice: /draft rally recap\nBot: Variant 1: ...\nbob: make it shorter"


def test_render_single_message_has_no_context() -> None:
    history = ThreadHistory()
    history.record(CHAT, _msg(1, "hello"))
    assert history.render(CHAT, 1) is None
    assert history.render(CHAT, 99) is None


def test_build_thread_prompt() -> None:
    assert build_thread_prompt("make it shorter", None) == "make it shorter"
    prompt = build_thread_prompt("make it shorter", "alice: a\nBot: b")
    assert prompt == (
        "Here is the chat thread conversation for context:\n\n"
        "alice: a\nBot: b\n\n---\n\nUser request: make it shorter"
    )


def test_active_thread_outlives_newer_idle_threads() -> None:
    history = ThreadHistory(max_threads=2)
    history.record(CHAT, _msg(1, "long running"))
    history.record(CHAT, _msg(2, "idle"))
    history.record(CHAT, _msg(3, "still going"), reply_to_id=1)
    history.record(CHAT, _msg(4, "newest"))

    assert [message.text for message in history.messages(CHAT, 1)] == ["long running", "still going"]
    assert history.messages(CHAT, 2) == []
    assert not history.knows(CHAT, 2)
    assert history.root_of(CHAT, 3) == 1
