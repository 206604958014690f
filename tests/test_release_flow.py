import unittest
from pathlib import Path

from application.release_flow import (
    ReleaseFlowConfig,
    ReleaseFlowDependencies,
    run_once,
    run_poll_loop,
    run_release_cycle,
)
from application.release_flow.poll_loop import next_tick_after
from application.tag_watch import TagWatcher
from domain.errors import APIError, NoChangesError, PushError, TransientAPIError
from domain.models import ChangeSet, PullRequestRecord, RepositoryReference, TagState


MONITORED = RepositoryReference(owner="acme", name="upstream")
TARGET = RepositoryReference(owner="acme", name="widgets")


class _FakePipeline:
    """Records every pipeline call; individual steps can be made to fail."""

    def __init__(self) -> None:
        self.calls: list[str] = []
        self.steps: list[tuple[str, str, str | None]] = []
        self.pull_requests: list[tuple[RepositoryReference, str, str, str, str]] = []
        self.ended: list[str | None] = []
        self.fail_apply: Exception | None = None
        self.fail_push: Exception | None = None
        self.fail_pull_request: Exception | None = None

    def sync(self) -> None:
        self.calls.append("sync")

    def apply_change(self, tag: str) -> ChangeSet:
        self.calls.append(f"apply:{tag}")
        if self.fail_apply:
            raise self.fail_apply
        return ChangeSet(
            branch_name=f"tt-{tag}",
            modified_files=(Path("Dockerfile"),),
            commit_sha="c0ffee",
            tag_ref=f"refs/tags/{tag}",
        )

    def publish_branch(self) -> None:
        self.calls.append("push")
        if self.fail_push:
            raise self.fail_push

    def create_pull_request(
        self,
        reference: RepositoryReference,
        branch_name: str,
        base_branch: str,
        title: str,
        body: str,
    ) -> PullRequestRecord:
        self.calls.append("pull_request")
        if self.fail_pull_request:
            raise self.fail_pull_request
        self.pull_requests.append((reference, branch_name, base_branch, title, body))
        return PullRequestRecord(number=len(self.pull_requests), url=f"https://github.com/acme/widgets/pull/{len(self.pull_requests)}")

    def observe_step(self, step: str, status: str, detail: str | None = None) -> None:
        self.steps.append((step, status, detail))

    def dependencies(self) -> ReleaseFlowDependencies:
        return ReleaseFlowDependencies(
            sync=self.sync,
            apply_change=self.apply_change,
            publish_branch=self.publish_branch,
            create_pull_request=self.create_pull_request,
            end_cycle=lambda result: self.ended.append(result.status if result else None),
            observe_step=self.observe_step,
        )


class _ScriptedTags:
    def __init__(self, *responses: list[TagState] | Exception) -> None:
        self.responses = list(responses)

    def __call__(self, _: RepositoryReference) -> list[TagState]:
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        return response


class _FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


CONFIG = ReleaseFlowConfig(target_repository=TARGET)


class ReleaseCycleTests(unittest.TestCase):
    def test_cycle_runs_stages_in_order_and_opens_pull_request(self) -> None:
        pipeline = _FakePipeline()

        result = run_release_cycle("1.4.0", CONFIG, pipeline.dependencies())

        self.assertEqual(pipeline.calls, ["sync", "apply:1.4.0", "push", "pull_request"])
        self.assertEqual(
            pipeline.pull_requests,
            [(TARGET, "tt-1.4.0", "master", "Update to 1.4.0", "Update to 1.4.0\n\n-- Your loyal release bot")],
        )
        self.assertEqual(result.status, "success")
        self.assertEqual(result.branch, "tt-1.4.0")
        self.assertEqual(result.pr_number, 1)
        self.assertEqual(pipeline.ended, ["success"])

    def test_no_changes_stops_before_commit_side_effects(self) -> None:
        pipeline = _FakePipeline()
        pipeline.fail_apply = NoChangesError("No files modified for tag 1.4.0")

        result = run_release_cycle("1.4.0", CONFIG, pipeline.dependencies(), raise_on_error=False)

        self.assertEqual(result.status, "error")
        self.assertIn("No files modified", result.error)
        self.assertEqual(pipeline.calls, ["sync", "apply:1.4.0"])
        self.assertIn(("finalize", "error", "No files modified for tag 1.4.0"), pipeline.steps)

    def test_push_rejection_prevents_pull_request(self) -> None:
        pipeline = _FakePipeline()
        pipeline.fail_push = PushError("rejected: stale info")

        with self.assertRaises(PushError):
            run_release_cycle("1.4.0", CONFIG, pipeline.dependencies())

        self.assertNotIn("pull_request", pipeline.calls)
        self.assertEqual(pipeline.ended, ["error"])

    def test_publish_failure_is_reported_as_error_result(self) -> None:
        pipeline = _FakePipeline()
        pipeline.fail_pull_request = APIError("A pull request already exists")

        result = run_release_cycle("1.4.0", CONFIG, pipeline.dependencies(), raise_on_error=False)

        self.assertFalse(result.succeeded)
        self.assertEqual(result.tag, "1.4.0")


class RunOnceTests(unittest.TestCase):
    def test_supplied_tag_skips_tag_lookup(self) -> None:
        pipeline = _FakePipeline()
        watcher = TagWatcher(_ScriptedTags(TransientAPIError("must not be called")))

        result = run_once(CONFIG, pipeline.dependencies(), watcher=watcher, monitored_repository=MONITORED, tag="2.0.0")

        self.assertTrue(result.succeeded)
        self.assertIn("apply:2.0.0", pipeline.calls)

    def test_latest_tag_is_used_when_no_tag_supplied(self) -> None:
        pipeline = _FakePipeline()
        watcher = TagWatcher(_ScriptedTags([TagState("1.4.0", "b"), TagState("1.3.0", "a")]))

        result = run_once(CONFIG, pipeline.dependencies(), watcher=watcher, monitored_repository=MONITORED)

        self.assertEqual(result.status, "success")
        self.assertEqual(pipeline.pull_requests[0][3], "Update to 1.4.0")

    def test_repository_without_tags_is_a_successful_no_op(self) -> None:
        pipeline = _FakePipeline()
        watcher = TagWatcher(_ScriptedTags([]))

        result = run_once(CONFIG, pipeline.dependencies(), watcher=watcher, monitored_repository=MONITORED)

        self.assertEqual(result.status, "no_tags")
        self.assertTrue(result.succeeded)
        self.assertEqual(pipeline.calls, [])

    def test_tag_listing_failure_is_a_failure(self) -> None:
        pipeline = _FakePipeline()
        watcher = TagWatcher(_ScriptedTags(TransientAPIError("rate limited")))

        result = run_once(CONFIG, pipeline.dependencies(), watcher=watcher, monitored_repository=MONITORED)

        self.assertFalse(result.succeeded)
        self.assertEqual(pipeline.calls, [])

    def test_pipeline_error_is_a_failure(self) -> None:
        pipeline = _FakePipeline()
        pipeline.fail_push = PushError("denied")

        result = run_once(CONFIG, pipeline.dependencies(), watcher=TagWatcher(_ScriptedTags([])),
                          monitored_repository=MONITORED, tag="1.4.0")

        self.assertEqual(result.status, "error")


class PollLoopTests(unittest.TestCase):
    def test_loop_survives_failed_cycle_and_handles_next_tag(self) -> None:
        pipeline = _FakePipeline()
        pipeline.fail_push = PushError("stale remote ref")
        tags = _ScriptedTags(
            [TagState("v1", "a")],
            [TagState("v2", "b")],
            [TagState("v2", "b")],
            TransientAPIError("timeout"),
            [TagState("v3", "c")],
        )
        watcher = TagWatcher(tags)
        clock = _FakeClock()
        dependencies = pipeline.dependencies()

        def sleep(seconds: float) -> None:
            clock.sleep(seconds)
            if len(clock.sleeps) == 2:
                pipeline.fail_push = None

        run_poll_loop(
            CONFIG,
            dependencies,
            watcher=watcher,
            monitored_repository=MONITORED,
            interval_seconds=30,
            sleep=sleep,
            clock=clock,
            max_ticks=4,
        )

        self.assertEqual(clock.sleeps, [30, 30, 30, 30])
        self.assertEqual(
            pipeline.calls,
            ["sync", "apply:v2", "push", "sync", "apply:v3", "push", "pull_request"],
        )
        self.assertEqual([pull[1] for pull in pipeline.pull_requests], ["tt-v3"])
        self.assertEqual(watcher.current_tag_name(), "v3")

    def test_ticks_missed_during_a_long_cycle_are_dropped(self) -> None:
        self.assertEqual(next_tick_after(10.0, 5.0, 10.0), (20.0, 0))
        self.assertEqual(next_tick_after(10.0, 35.0, 10.0), (40.0, 2))
        self.assertEqual(next_tick_after(10.0, 20.0, 10.0), (30.0, 1))


if __name__ == "__main__":
    unittest.main()
