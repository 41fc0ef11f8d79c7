"""Tests for the trigger sink.

**Feature: folioalerts**
"""

from datetime import timedelta

from folioalerts.db.store import AlertStore
from folioalerts.engine.trigger import TriggerSink

from conftest import T0, FailingNotifier, RecordingNotifier, price_alert


class TestTriggerCommit:
    """
    **Feature: folioalerts, Property 17: Atomic Trigger**

    *For any* satisfied alert, triggered, triggered_at and last_checked are
    committed together before the notifier is called.
    """

    def test_fire_commits_and_notifies(self, store: AlertStore):
        alert = store.create(price_alert(recurring="daily"))
        notifier = RecordingNotifier()
        when = T0 + timedelta(minutes=1)

        assert TriggerSink(store, notifier).fire(alert, when) is True

        loaded = store.get(alert.id)
        assert loaded.triggered is True
        assert loaded.triggered_at == when
        assert loaded.last_checked == when
        assert loaded.notification_sent is True

        assert len(notifier.notifications) == 1
        notification = notifier.notifications[0]
        assert notification.alert_id == alert.id
        assert notification.symbol == "BTC"
        assert notification.alert_type == "price"
        assert notification.description == "BTC price above $50,000.00"
        assert notification.triggered_at == when

    def test_trigger_visible_to_notifier(self, store: AlertStore):
        alert = store.create(price_alert())
        seen = []

        class InspectingNotifier(RecordingNotifier):
            def notify(self, notification):
                seen.append(store.get(notification.alert_id).triggered)
                super().notify(notification)

        TriggerSink(store, InspectingNotifier()).fire(alert, T0)
        assert seen == [True]

    def test_history_records_delivery(self, store: AlertStore):
        alert = store.create(price_alert())
        TriggerSink(store, RecordingNotifier()).fire(alert, T0)

        events = store.get_triggers()
        assert len(events) == 1
        assert events[0].alert_id == alert.id
        assert events[0].delivered is True
        assert events[0].error is None


class TestSingleFire:
    """
    **Feature: folioalerts, Property 18: At Most One Notification**

    *For any* alert, firing twice notifies once.
    """

    def test_second_fire_does_not_notify(self, store: AlertStore):
        alert = store.create(price_alert())
        notifier = RecordingNotifier()
        sink = TriggerSink(store, notifier)

        assert sink.fire(alert, T0) is True
        assert sink.fire(alert, T0 + timedelta(minutes=1)) is False

        assert len(notifier.notifications) == 1
        assert len(store.get_triggers()) == 1
        assert store.get(alert.id).triggered_at == T0

    def test_fire_after_reset_notifies_again(self, store: AlertStore):
        alert = store.create(price_alert())
        notifier = RecordingNotifier()
        sink = TriggerSink(store, notifier)

        sink.fire(alert, T0)
        store.reset(alert.id)
        assert sink.fire(alert, T0 + timedelta(hours=1)) is True
        assert len(notifier.notifications) == 2


class TestDeliveryFailure:
    """
    **Feature: folioalerts, Property 19: Delivery Failure Keeps Trigger**

    *For any* notifier failure, the trigger stays committed and the failure
    is recorded in the trigger history.
    """

    def test_failing_notifier(self, store: AlertStore):
        alert = store.create(price_alert())
        notifier = FailingNotifier()

        assert TriggerSink(store, notifier).fire(alert, T0) is True

        assert notifier.attempts == 1
        loaded = store.get(alert.id)
        assert loaded.triggered is True
        assert loaded.notification_sent is False

        events = store.get_triggers()
        assert events[0].delivered is False
        assert events[0].error == "smtp unreachable"

    def test_without_notifier(self, store: AlertStore):
        alert = store.create(price_alert())

        assert TriggerSink(store).fire(alert, T0) is True

        assert store.get(alert.id).notification_sent is False
        assert store.get_triggers()[0].error == "no notifier configured"
