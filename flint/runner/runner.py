# flint/runner/runner.py
from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from flint.client.base import BotClient
from flint.engine.assertions import AssertionEngine
from flint.engine.breakpoint import BreakpointController
from flint.engine.context import ExecutionContext, Lane
from flint.engine.dispatcher import ActionDispatcher
from flint.engine.scheduler import TimelineScheduler
from flint.engine.tick_sync import TickSynchronizer
from flint.observability.instrumentation import Instrumentation, NoOpInstrumentation
from flint.runner.report import RunReport, TestResult, TestStatus
from flint.spec.models import Region, TestCase
from flint.spec.offset import apply_offsets
from flint.utils.errors import ConnectionLost, FlintError, SpecError, SyncTimeout
from flint.utils.logger import logs


# --------------------------------------------------
# ordering
# --------------------------------------------------
def resolve_order(tests: Sequence[TestCase]) -> Tuple[List[TestCase], List[Tuple[str, str]]]:
    """
    Topological run order honouring ``dependencies``, stable w.r.t. input order.

    Returns (ordered tests, rejected (name, reason) pairs). Duplicate names,
    unknown dependency names and cycles are rejected, never raised.
    """
    rejected: List[Tuple[str, str]] = []
    candidates: Dict[str, TestCase] = {}

    for test in tests:
        if test.name in candidates:
            rejected.append((test.name, "duplicate test name"))
            continue
        candidates[test.name] = test

    known = set(candidates)
    for name in list(candidates):
        missing = sorted(candidates[name].dependencies - known)
        if missing:
            rejected.append((name, f"missing dependency: {', '.join(missing)}"))
            del candidates[name]

    ordered: List[TestCase] = []
    placed: set = set()
    pending = list(candidates.values())
    while pending:
        ready = next(
            (t for t in pending if all(d in placed or d not in candidates for d in t.dependencies)),
            None,
        )
        if ready is None:
            cycle = ", ".join(t.name for t in pending)
            rejected.extend((t.name, f"dependency cycle among: {cycle}") for t in pending)
            break
        ordered.append(ready)
        placed.add(ready.name)
        pending.remove(ready)

    return ordered, rejected


def dependency_waves(ordered: Sequence[TestCase]) -> List[List[TestCase]]:
    """
    Group an already-ordered list into waves: a test lands one wave after
    the latest of its dependencies.
    """
    level: Dict[str, int] = {}
    waves: List[List[TestCase]] = []
    for test in ordered:
        lvl = 1 + max((level[d] for d in test.dependencies if d in level), default=-1)
        level[test.name] = lvl
        if lvl == len(waves):
            waves.append([])
        waves[lvl].append(test)
    return waves


class TestRunner:
    """
    TestRunner = orchestration only

    - run order / dependency gating
    - cleanup bracket around every test body (or parallel wave)
    - one ExecutionContext per timeline run
    - fold every outcome into a RunReport
    """

    __test__ = False

    def __init__(
        self,
        client: BotClient,
        run_cfg,
        control_cfg,
        controller: Optional[BreakpointController] = None,
        inst: Instrumentation | None = None,
    ):
        self.client = client
        self.run_cfg = run_cfg
        self.control_cfg = control_cfg
        self.inst = inst if inst is not None else NoOpInstrumentation()

        self.sync = TickSynchronizer(client, timeout=run_cfg.sync_timeout)
        self.dispatcher = ActionDispatcher(client)
        self.assertions = AssertionEngine(client, settle=run_cfg.assert_settle)
        self.controller = controller if controller is not None else BreakpointController.from_config(control_cfg, client)
        self.scheduler = TimelineScheduler(self.sync, self.dispatcher, self.assertions, self.controller)

    # --------------------------------------------------
    # entry
    # --------------------------------------------------
    @logs.catch("test run crashed")
    def run(
        self,
        tests: Sequence[TestCase],
        load_errors: Iterable[SpecError] = (),
        run_name: str = "flint",
    ) -> RunReport:
        report = RunReport()

        for err in load_errors:
            name = err.test or (Path(err.path).stem if err.path is not None else "<unknown>")
            report.add(TestResult.skipped(name, str(err)))

        order, rejected = resolve_order(tests)
        for name, reason in rejected:
            logs.warning(f"[Runner] {name} skipped: {reason}")
            report.add(TestResult.skipped(name, reason))

        logs.info(f"[Runner] ====== START {run_name}: {len(order)} test(s) ======")
        self.inst.progress.start("tests", len(order))
        self.controller.start()
        try:
            if self.run_cfg.parallel:
                self._run_waves(order, report)
            else:
                self._run_sequential(order, report)
        except ConnectionLost as e:
            logs.error(f"[Runner] connection lost, run aborted: {e}")
            report.aborted = f"connection lost: {e}"
            for test in order:
                if report.get(test.name) is None:
                    report.add(TestResult.skipped(test.name, "not run: connection lost"))
        finally:
            self.controller.stop()
            self.sync.detach()

        self.inst.progress.done("tests")
        self.inst.metrics.record("passed", report.passed)
        self.inst.metrics.record("failed", report.failed)
        self.inst.metrics.record("skipped", report.skipped)
        self.inst.generate_timeline_report(run_name)
        logs.info(
            f"[Runner] ====== DONE {run_name}: {report.passed} passed, "
            f"{report.failed} failed, {report.skipped} skipped ======"
        )
        return report

    # --------------------------------------------------
    # sequential
    # --------------------------------------------------
    def _run_sequential(self, order: Sequence[TestCase], report: RunReport) -> None:
        for i, test in enumerate(order, 1):
            self.inst.progress.update("tests", i, len(order))

            blocked = self._blocked_by(test, report)
            if blocked:
                logs.warning(f"[Runner] {test.name} skipped: {blocked}")
                report.add(TestResult.skipped(test.name, blocked))
                continue

            logs.info(f"[Runner] running {test.name}" + (f": {test.description}" if test.description else ""))
            lane = Lane(test)
            ctx = ExecutionContext(label=test.name)
            try:
                with self.inst.timer(test.name):
                    self._execute([lane], ctx)
            finally:
                report.add(self._fold(lane, ctx))

    # --------------------------------------------------
    # parallel waves
    # --------------------------------------------------
    def _run_waves(self, order: Sequence[TestCase], report: RunReport) -> None:
        for index, wave in enumerate(dependency_waves(order)):
            runnable: List[TestCase] = []
            for test in wave:
                blocked = self._blocked_by(test, report)
                if blocked:
                    logs.warning(f"[Runner] {test.name} skipped: {blocked}")
                    report.add(TestResult.skipped(test.name, blocked))
                else:
                    runnable.append(test)
            if not runnable:
                continue

            lanes = [Lane(t) for t in apply_offsets(runnable, self.run_cfg.spacing)]
            label = f"wave {index} ({len(lanes)} test(s))"
            logs.info(f"[Runner] running {label}: {', '.join(l.name for l in lanes)}")

            ctx = ExecutionContext(label=label)
            try:
                with self.inst.timer(label):
                    self._execute(lanes, ctx)
            finally:
                for lane in lanes:
                    report.add(self._fold(lane, ctx))

    # --------------------------------------------------
    # one timeline run inside its cleanup bracket
    # --------------------------------------------------
    def _execute(self, lanes: Sequence[Lane], ctx: ExecutionContext) -> None:
        regions = [l.test.cleanup_region for l in lanes if l.test.cleanup_region is not None]

        try:
            self._cleanup(regions)
            if self.control_cfg.break_before_test:
                self.controller.pause(ctx, None, "before test")
            self.scheduler.run(lanes, ctx)
        except SyncTimeout as e:
            logs.error(f"[Runner] {ctx.label} aborted at tick {ctx.tick}: {e}")
            ctx.abort(str(e))
        except ConnectionLost as e:
            ctx.abort(f"connection lost: {e}")
            raise
        except FlintError as e:
            logs.exception(f"[Runner] {ctx.label} aborted: {e}")
            ctx.abort(str(e))
        finally:
            self.inst.metrics.incr("ticks", ctx.ticks_elapsed)
            try:
                self._cleanup(regions)
            except FlintError as e:
                # must not mask the test's own outcome
                logs.exception(f"[Runner] cleanup after {ctx.label} failed: {e}")

    def _cleanup(self, regions: Sequence[Region]) -> None:
        for region in regions:
            self.dispatcher.clear(region)

    # --------------------------------------------------
    # helpers
    # --------------------------------------------------
    @staticmethod
    def _blocked_by(test: TestCase, report: RunReport) -> Optional[str]:
        for dep in sorted(test.dependencies):
            result = report.get(dep)
            if result is None:
                return f"dependency {dep} did not run"
            if result.status is not TestStatus.PASSED:
                return f"dependency {dep} {result.status.value}"
        return None

    @staticmethod
    def _fold(lane: Lane, ctx: ExecutionContext) -> TestResult:
        result = TestResult.from_outcomes(lane.name, lane.outcomes, ctx.ticks_elapsed, ctx.abort_reason)
        if result.passed:
            logs.info(f"[Runner] ✓ {lane.name}: {len(lane.outcomes)} assertion(s) passed")
        else:
            logs.warning(
                f"[Runner] ✗ {lane.name}: {len(result.failures)} of {len(lane.outcomes)} assertion(s) failed"
                + (f" ({ctx.abort_reason})" if ctx.abort_reason else "")
            )
        return result
