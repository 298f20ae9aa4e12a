from unittest import TestCase

from parameterized import parameterized

from funcli.lib.build.build_strategy import BuildStrategy, BuildStrategySelector
from funcli.lib.build.taskflow import DEFAULT_TASK_FLOW, PYTHON_PIP_TASK_FLOW

FUNFILE = "/code/Funfile"
MANIFEST = [PYTHON_PIP_TASK_FLOW]
NO_MANIFEST = [DEFAULT_TASK_FLOW]


class TestBuildStrategySelector(TestCase):
    @parameterized.expand(
        [
            # build stage
            (False, True, None, NO_MANIFEST, BuildStrategy.SKIP),
            (True, True, None, NO_MANIFEST, BuildStrategy.SKIP),
            (False, True, None, [], BuildStrategy.SKIP),
            (False, True, FUNFILE, NO_MANIFEST, BuildStrategy.CONTAINER),
            (False, True, FUNFILE, MANIFEST, BuildStrategy.CONTAINER),
            (True, True, None, MANIFEST, BuildStrategy.CONTAINER),
            (False, True, None, MANIFEST, BuildStrategy.IN_PROCESS),
            # install stage
            (False, False, FUNFILE, NO_MANIFEST, BuildStrategy.SKIP),
            (True, False, None, NO_MANIFEST, BuildStrategy.SKIP),
            (True, False, None, MANIFEST, BuildStrategy.CONTAINER),
            (False, False, None, MANIFEST, BuildStrategy.IN_PROCESS),
        ]
    )
    def test_select(self, use_container, build_stage, funfile_path, task_flows, expected):
        selector = BuildStrategySelector(use_container=use_container, build_stage=build_stage)

        self.assertEqual(selector.select(funfile_path, task_flows), expected)
