import unittest
from datetime import date
from types import SimpleNamespace

from services.timeline_service import (
    TimelineStatus,
    build_project_timeline,
    classify_variance,
    partition_projects,
    summarize_project_health,
    summarize_project_progress,
    weeks_remaining,
)


def make_project(project_id, progress, start_date=None, end_date=None):
    stage = SimpleNamespace(id=project_id, percentage=100, progress=progress, order_index=0, devops=0, engineers=0)
    return SimpleNamespace(
        id=project_id,
        name=f"Project {project_id}",
        stages=[stage],
        tasks=[],
        start_date=start_date,
        end_date=end_date,
    )


class ProjectTimelineTestCase(unittest.TestCase):
    def setUp(self):
        self.start = date(2024, 1, 1)
        self.end = date(2024, 1, 11)

    def test_expected_progress_is_share_of_elapsed_days(self):
        timeline = build_project_timeline(make_project(1, 50, self.start, self.end), today=date(2024, 1, 6))
        self.assertEqual(timeline.total_days, 10)
        self.assertEqual(timeline.elapsed_days, 5)
        self.assertAlmostEqual(timeline.expected_progress, 50)
        self.assertAlmostEqual(timeline.variance, 0)
        self.assertEqual(timeline.status, TimelineStatus.ON_TRACK)
        self.assertEqual(timeline.days_remaining, 5)
        self.assertEqual(timeline.weeks_remaining, 1)

    def test_variance_boundaries(self):
        today = date(2024, 1, 6)
        at_risk = build_project_timeline(make_project(1, 40, self.start, self.end), today=today)
        behind = build_project_timeline(make_project(2, 39, self.start, self.end), today=today)
        self.assertAlmostEqual(at_risk.variance, -10)
        self.assertEqual(at_risk.status, TimelineStatus.AT_RISK)
        self.assertEqual(behind.status, TimelineStatus.BEHIND)

    def test_classify_variance(self):
        self.assertEqual(classify_variance(0), TimelineStatus.ON_TRACK)
        self.assertEqual(classify_variance(12.5), TimelineStatus.ON_TRACK)
        self.assertEqual(classify_variance(-0.1), TimelineStatus.AT_RISK)
        self.assertEqual(classify_variance(-10), TimelineStatus.AT_RISK)
        self.assertEqual(classify_variance(-10.01), TimelineStatus.BEHIND)

    def test_expected_progress_is_clamped(self):
        before = build_project_timeline(make_project(1, 0, self.start, self.end), today=date(2023, 12, 25))
        after = build_project_timeline(make_project(2, 100, self.start, self.end), today=date(2024, 2, 1))
        self.assertEqual(before.elapsed_days, 0)
        self.assertEqual(before.expected_progress, 0)
        self.assertEqual(after.expected_progress, 100)

    def test_overdue_requires_passed_end_and_unfinished_work(self):
        late = build_project_timeline(make_project(1, 90, self.start, self.end), today=date(2024, 1, 15))
        finished = build_project_timeline(make_project(2, 100, self.start, self.end), today=date(2024, 1, 15))
        self.assertEqual(late.days_remaining, -4)
        self.assertEqual(late.weeks_remaining, -1)
        self.assertTrue(late.is_overdue)
        self.assertEqual(late.status_label, "AT-RISK - OVERDUE")
        self.assertFalse(finished.is_overdue)

    def test_weeks_remaining_keeps_the_sign_of_days_remaining(self):
        self.assertEqual(weeks_remaining(10), 2)
        self.assertEqual(weeks_remaining(7), 1)
        self.assertEqual(weeks_remaining(0), 0)
        self.assertEqual(weeks_remaining(-3), -1)
        self.assertEqual(weeks_remaining(-8), -2)

        three_days_late = build_project_timeline(
            make_project(1, 50, self.start, self.end), today=date(2024, 1, 14)
        )
        self.assertEqual(three_days_late.days_remaining, -3)
        self.assertEqual(three_days_late.weeks_remaining, -1)

    def test_zero_length_schedule_does_not_divide_by_zero(self):
        day = date(2024, 3, 1)
        timeline = build_project_timeline(make_project(1, 0, day, day), today=day)
        self.assertEqual(timeline.expected_progress, 100)
        self.assertEqual(timeline.status, TimelineStatus.BEHIND)

    def test_planning_projects_are_listed_separately(self):
        scheduled = make_project(1, 10, self.start, self.end)
        planning = make_project(2, 0)
        timelines, planning_list = partition_projects([scheduled, planning], today=date(2024, 1, 6))
        self.assertIsNone(build_project_timeline(planning))
        self.assertEqual([t.project_id for t in timelines], [1])
        self.assertEqual(planning_list, [planning])

    def test_health_summary_counts_each_status(self):
        today = date(2024, 1, 6)
        projects = [
            make_project(1, 80, self.start, self.end),
            make_project(2, 45, self.start, self.end),
            make_project(3, 10, self.start, self.end),
            make_project(4, 10, date(2023, 12, 1), date(2023, 12, 20)),
        ]
        timelines, _ = partition_projects(projects, today=today)
        health = summarize_project_health(timelines)
        self.assertEqual(health.on_track, 1)
        self.assertEqual(health.at_risk, 1)
        self.assertEqual(health.behind, 2)
        self.assertEqual(health.overdue, 1)


class ProgressSummaryTestCase(unittest.TestCase):
    def test_counts_and_average(self):
        projects = [make_project(1, 0), make_project(2, 50), make_project(3, 100)]
        summary = summarize_project_progress(projects)
        self.assertEqual(summary.total, 3)
        self.assertEqual(summary.not_started, 1)
        self.assertEqual(summary.active, 1)
        self.assertEqual(summary.completed, 1)
        self.assertAlmostEqual(summary.average_progress, 50)

    def test_no_projects(self):
        self.assertEqual(summarize_project_progress([]).average_progress, 0)


if __name__ == "__main__":
    unittest.main()
