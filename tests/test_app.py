import pytest

from tracker import SettingsError
from tracker.state import SETTINGS_KEY


def test_start_creates_today_and_arms(app, loop):
    app.start()

    assert app.tracker.today_key() in app.tracker.progress.daily_log
    assert len(loop.pending()) == 1
    assert loop.pending()[0].delay == 3600


def test_each_action_leaves_one_timer(app, loop):
    app.start()
    for action in (app.log_glass, app.log_glass, app.undo_glass, app.reset_day, app.undo_glass, app.log_glass):
        action()
        assert len(loop.pending()) == 1


def test_delay_follows_progress(app, loop):
    app.start()
    for _ in range(5):
        app.log_glass()
    assert app.scheduler.delay_minutes == 90

    app.log_glass()
    app.log_glass()
    assert app.scheduler.delay_minutes == 180


def test_noop_action_does_not_rearm(app, loop):
    app.start()
    handles = len(loop.handles)

    result = app.undo_glass()

    assert not result.changed
    assert len(loop.handles) == handles


def test_subscribers_receive_results(app):
    seen = []
    unsubscribe = app.subscribe(seen.append)

    app.log_glass()
    unsubscribe()
    app.log_glass()

    assert len(seen) == 1
    assert seen[0].events[0].kind == "glass_logged"


def test_reminder_fires_through_dispatcher(app, loop, banner):
    app.start()
    loop.run_next()

    assert len(app.dispatcher.history) == 1
    assert banner.shown == [app.dispatcher.history[0].message]
    # the 5s banner timer and the next reminder
    assert sorted(h.delay for h in loop.pending()) == [5, 3600]


def test_adjust_daily_goal_within_bounds(app, store):
    assert app.adjust_daily_goal(4).changed
    assert app.settings.daily_goal == 12
    assert store.get(SETTINGS_KEY)["dailyGoal"] == 12

    assert not app.adjust_daily_goal(1).changed
    assert app.settings.daily_goal == 12


def test_set_daily_goal_rejects_out_of_range(app):
    with pytest.raises(SettingsError):
        app.set_daily_goal(3)
    with pytest.raises(SettingsError):
        app.set_daily_goal(13)
    assert app.settings.daily_goal == 8


def test_frequency_change_rearms(app, loop):
    app.start()
    app.set_base_reminder_frequency(30)

    assert app.scheduler.delay_minutes == 30
    assert len(loop.pending()) == 1
    with pytest.raises(SettingsError):
        app.set_base_reminder_frequency(0)


def test_accessibility_settings(app, store):
    result = app.set_font_size("large")
    assert result.events[0].payload["bodyClasses"] == ["font-large"]

    app.set_high_contrast(True)
    assert app.body_classes() == ["font-large", "high-contrast"]
    assert store.get(SETTINGS_KEY)["highContrast"] is True

    with pytest.raises(SettingsError):
        app.set_font_size("huge")


def test_summary(app):
    app.start()
    app.log_glass()
    summary = app.summary()

    assert summary["glasses"] == 1
    assert summary["glassesLeft"] == 7
    assert summary["totalGlasses"] == 1
    assert summary["reminder"] == "Next reminder in 60 minutes"


def test_instances_do_not_share_state(app, clock, loop):
    from tracker import HydrationApp, MemoryStore

    other = HydrationApp(MemoryStore(), loop=loop, clock=clock)
    app.log_glass()

    assert other.tracker.today_glasses() == 0


def test_rewards_view_after_first_day(app):
    for _ in range(8):
        app.log_glass()

    view = app.rewards()
    unlocked = {kind: [r["id"] for r in rewards if r["unlocked"]] for kind, rewards in view.items()}
    assert unlocked == {"badge": ["first-day"], "sticker": ["star"], "accessory": []}
