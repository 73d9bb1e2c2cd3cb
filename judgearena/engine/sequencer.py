from typing import List

from .comparator import compare_outputs, normalize_output
from .errors import ExecutionError, WrongAnswer
from .runner import SandboxRunner
from .sandbox import SandboxJob
from ..models.models import TestCase
from ..utils.logger_config import get_logger

logger = get_logger("sequencer")


class TestCaseSequencer:
    """
    Runs a problem's test cases in declaration order and stops at the first
    failure. Later test cases are never executed once one has failed.
    """

    __test__ = False

    def __init__(self, runner: SandboxRunner):
        self.runner = runner

    def run_all(self, job: SandboxJob, test_cases: List[TestCase]) -> int:
        """Return the number of passed test cases, or raise on the first failure."""
        total = len(test_cases)
        passed = 0

        for index, test_case in enumerate(sorted(test_cases, key=lambda tc: tc.ordinal), start=1):
            logger.debug(f"Running test case {index}/{total}")
            try:
                outcome = self.runner.run(job, test_case.input_data)
            except ExecutionError as e:
                e.test_index = index
                e.total = total
                logger.info(f"Runtime error ({e.kind.value}) on test case {index}/{total}")
                raise

            if not compare_outputs(test_case.expected_output, outcome.stdout):
                logger.info(f"Wrong answer on test case {index}/{total}")
                logger.debug(f"Expected: {normalize_output(test_case.expected_output)!r}")
                logger.debug(f"Received: {normalize_output(outcome.stdout)!r}")
                raise WrongAnswer(index, total)

            passed += 1

        return passed
