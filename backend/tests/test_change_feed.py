from mindbridge.services.change_feed import ChangeEvent, ChangeFeed, UPDATE, DELETE


def _event(row_id, status="active", table="expert_chat_sessions"):
    return ChangeEvent(table=table, event_type=UPDATE, new={"id": row_id, "status": status})


def test_subscriber_receives_full_row():
    feed = ChangeFeed()
    received = []

    feed.subscribe("expert_chat_sessions", received.append)
    delivered = feed.publish(_event(1))

    assert delivered == 1
    assert received[0].new == {"id": 1, "status": "active"}


def test_row_filter_and_table_filter():
    feed = ChangeFeed()
    only_row_2 = []
    whole_table = []

    feed.subscribe("expert_chat_sessions", only_row_2.append, row_id=2)
    feed.subscribe("expert_chat_sessions", whole_table.append)

    feed.publish(_event(1))
    feed.publish(_event(2))
    feed.publish(_event(2, table="chat_sessions"))

    assert [e.row_id for e in only_row_2] == [2]
    assert [e.row_id for e in whole_table] == [1, 2]


def test_delete_events_match_on_old_row():
    feed = ChangeFeed()
    received = []
    feed.subscribe("expert_chat_sessions", received.append, row_id=5)

    feed.publish(ChangeEvent(table="expert_chat_sessions", event_type=DELETE, old={"id": 5}))

    assert len(received) == 1
    assert received[0].new is None


def test_unsubscribe_is_idempotent():
    feed = ChangeFeed()
    received = []
    subscription = feed.subscribe("expert_chat_sessions", received.append)

    subscription.unsubscribe()
    subscription.unsubscribe()
    feed.publish(_event(1))

    assert received == []
    assert subscription.active is False
    assert feed.subscriber_count() == 0


def test_failing_subscriber_does_not_block_others():
    feed = ChangeFeed()
    received = []

    def broken(_event):
        raise RuntimeError("client went away")

    feed.subscribe("expert_chat_sessions", broken)
    feed.subscribe("expert_chat_sessions", received.append)

    assert feed.publish(_event(1)) == 1
    assert len(received) == 1


def test_no_replay_for_late_subscribers():
    feed = ChangeFeed()
    feed.publish(_event(1))

    received = []
    feed.subscribe("expert_chat_sessions", received.append)

    assert received == []


def test_event_payload_shape():
    payload = _event(3).to_dict()

    assert payload["type"] == "change"
    assert payload["event"] == "UPDATE"
    assert payload["table"] == "expert_chat_sessions"
    assert payload["new"]["id"] == 3
    assert payload["commit_timestamp"]
