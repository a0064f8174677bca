from dashsync.domain.common.dispatcher import Dispatcher
from dashsync.domain.common.guard import InFlightGuard


def test_emit_invokes_callbacks_in_registration_order():
	dispatcher = Dispatcher()
	calls = []
	dispatcher.on("data-updated", lambda payload: calls.append(("a", payload)))
	dispatcher.on("data-updated", lambda payload: calls.append(("b", payload)))

	dispatcher.emit("data-updated", 1)

	assert calls == [("a", 1), ("b", 1)]


def test_duplicate_registration_fires_twice():
	dispatcher = Dispatcher()
	calls = []

	def callback(payload):
		calls.append(payload)

	dispatcher.on("notification", callback)
	dispatcher.on("notification", callback)
	dispatcher.emit("notification", "x")

	assert calls == ["x", "x"]


def test_off_with_callback_removes_one_registration():
	dispatcher = Dispatcher()
	calls = []

	def callback(payload):
		calls.append(payload)

	dispatcher.on("notification", callback)
	dispatcher.on("notification", callback)
	dispatcher.off("notification", callback)
	dispatcher.emit("notification", "x")

	assert calls == ["x"]


def test_off_without_callback_clears_event():
	dispatcher = Dispatcher()
	calls = []
	dispatcher.on("stats_updated", calls.append)
	dispatcher.on("stats_updated", calls.append)

	dispatcher.off("stats_updated")
	dispatcher.emit("stats_updated", {})

	assert calls == []
	assert dispatcher.listener_count("stats_updated") == 0


def test_off_unknown_event_or_callback_is_noop():
	dispatcher = Dispatcher()
	dispatcher.off("missing")
	dispatcher.on("known", print)
	dispatcher.off("known", len)

	assert dispatcher.listener_count("known") == 1


def test_failing_callback_does_not_stop_others(caplog):
	dispatcher = Dispatcher()
	calls = []

	def broken(_payload):
		raise RuntimeError("boom")

	dispatcher.on("data-updated", broken)
	dispatcher.on("data-updated", calls.append)

	dispatcher.emit("data-updated", 7)

	assert calls == [7]
	assert any("dispatcher callback failed" in record.getMessage() for record in caplog.records)


def test_callback_may_unsubscribe_during_emit():
	dispatcher = Dispatcher()
	calls = []

	def once(payload):
		calls.append(payload)
		dispatcher.off("tick", once)

	dispatcher.on("tick", once)
	dispatcher.emit("tick", 1)
	dispatcher.emit("tick", 2)

	assert calls == [1]


def test_guard_rejects_reentry_until_left():
	guard = InFlightGuard("snapshot_fetch")

	assert guard.try_enter("student-1") is True
	assert guard.try_enter("student-1") is False
	assert guard.try_enter("student-2") is True

	guard.leave("student-1")
	assert guard.try_enter("student-1") is True


def test_guard_context_manager_releases_after_failure():
	guard = InFlightGuard("recent_applications")

	try:
		with guard.entered("company-1") as acquired:
			assert acquired is True
			raise ValueError("load failed")
	except ValueError:
		pass

	assert guard.is_active("company-1") is False
	with guard.entered("company-1") as acquired:
		assert acquired is True
		with guard.entered("company-1") as nested:
			assert nested is False
		assert guard.is_active("company-1") is True
