from datetime import timedelta

from app.utils import current_week_start, utcnow


def test_stats_counts_current_week_and_recent_weeks(client, register, add_task):
    alice = register("alice")
    user_id = alice["user"]["id"]
    this_week = current_week_start()

    add_task(user_id, week_start=this_week)
    add_task(user_id, week_start=this_week, status="completed", completed_at=utcnow())
    add_task(user_id, week_start=this_week, status="in_progress")
    add_task(user_id, week_start=this_week, archived=True)
    for weeks_back in (1, 2, 3, 5):
        add_task(user_id, week_start=this_week - timedelta(weeks=weeks_back))

    response = client.get("/api/dashboard/stats", headers=alice["headers"])

    assert response.status_code == 200
    body = response.json()
    assert body["currentWeek"] == {"total_tasks": 3, "completed_tasks": 1, "pending_tasks": 1}
    assert [row["week_start"] for row in body["weeklyData"]] == [
        (this_week - timedelta(weeks=weeks_back)).isoformat() for weeks_back in (0, 1, 2, 3)
    ]
    assert body["weeklyData"][0]["total_tasks"] == 3
    assert body["weeklyData"][1] == {
        "week_start": (this_week - timedelta(weeks=1)).isoformat(),
        "total_tasks": 1,
        "completed_tasks": 0,
        "pending_tasks": 1,
    }


def test_stats_for_new_user_are_empty(client, register):
    alice = register("alice")

    body = client.get("/api/dashboard/stats", headers=alice["headers"]).json()

    assert body == {
        "currentWeek": {"total_tasks": 0, "completed_tasks": 0, "pending_tasks": 0},
        "weeklyData": [],
    }


def _seed_analytics(add_task, user_id):
    now = utcnow()
    add_task(user_id, priority=3, status="completed", completed_at=now, created_at=now)
    add_task(user_id, priority=3, created_at=now)
    add_task(user_id, priority=1, created_at=now - timedelta(days=10))
    add_task(user_id, priority=2, created_at=now - timedelta(days=100))
    add_task(user_id, priority=5, created_at=now, archived=True)
    return now


def test_analytics_week_window(client, register, add_task):
    alice = register("alice")
    now = _seed_analytics(add_task, alice["user"]["id"])

    body = client.get("/api/dashboard/analytics?timeframe=week", headers=alice["headers"]).json()

    assert body["timeframe"] == "week"
    assert body["trends"] == [
        {"date": now.date().isoformat(), "total_tasks": 2, "completed_tasks": 1},
    ]
    assert body["priorityDistribution"] == [{"priority": 3, "count": 2, "completed": 1}]


def test_analytics_defaults_to_month(client, register, add_task):
    alice = register("alice")
    now = _seed_analytics(add_task, alice["user"]["id"])

    body = client.get("/api/dashboard/analytics", headers=alice["headers"]).json()

    assert body["timeframe"] == "month"
    assert [row["date"] for row in body["trends"]] == [
        now.date().isoformat(),
        (now - timedelta(days=10)).date().isoformat(),
    ]
    assert [row["priority"] for row in body["priorityDistribution"]] == [3, 1]


def test_analytics_year_and_unknown_timeframes(client, register, add_task):
    alice = register("alice")
    _seed_analytics(add_task, alice["user"]["id"])

    year = client.get("/api/dashboard/analytics?timeframe=year", headers=alice["headers"]).json()
    unknown = client.get("/api/dashboard/analytics?timeframe=decade", headers=alice["headers"]).json()

    assert [row["priority"] for row in year["priorityDistribution"]] == [3, 2, 1]
    assert unknown["timeframe"] == "decade"
    assert [row["priority"] for row in unknown["priorityDistribution"]] == [3, 1]
