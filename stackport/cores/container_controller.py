"""
Container lifecycle control for crash-consistent volume copies.

Running containers of the stack are stopped before their bind-mounted
directories are archived and started again afterwards. Only containers this
controller actually stopped are ever started.
"""

import time
from typing import Callable, List, Tuple

from ..helpers.config import StackportConfig
from ..helpers.logging import get_logger
from ..helpers.ui_utils import run_command, SubprocessError
from ..types import ItemOutcome, OutcomeStatus, STAGE_CONTAINERS

logger = get_logger(__name__)


class ContainerController:
    """
    Stops and restarts the configured containers.

    Args:
        config: Run configuration (container list, delay, timeouts)
        runner: Command runner, ``run_command`` compatible
        sleep: Delay function, replaced in tests
    """

    def __init__(
        self,
        config: StackportConfig,
        runner: Callable = run_command,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.config = config
        self.runner = runner
        self.sleep = sleep
        self.stopped: List[str] = []

    def is_running(self, name: str) -> bool:
        """True if a container with exactly this name is running."""
        result = self.runner(
            ['docker', 'ps', '--filter', f'name=^{name}$', '--format', '{{.Names}}'],
            f"Checking container {name}",
            timeout=self.config.query_timeout,
        )
        return name in (result.stdout or "").split()

    def stop_running(self) -> List[ItemOutcome]:
        """
        Stop every configured container that is currently running.

        Names are recorded in configuration order; a short delay after each stop
        lets the service flush its files.
        """
        outcomes = []
        for name in self.config.containers:
            try:
                if not self.is_running(name):
                    logger.debug(f"Container not running: {name}", extra={'container': name})
                    outcomes.append(ItemOutcome(STAGE_CONTAINERS, name, OutcomeStatus.SKIPPED, "not running"))
                    continue

                self.runner(
                    ['docker', 'stop', name],
                    f"Stopping container {name}",
                    timeout=self.config.command_timeout,
                )
            except SubprocessError as e:
                logger.error(f"Failed to stop container {name}: {e}", extra={'container': name})
                outcomes.append(ItemOutcome(STAGE_CONTAINERS, name, OutcomeStatus.FAILED, f"stop failed: {e}"))
                continue

            self.stopped.append(name)
            logger.info(f"Stopped container: {name}", extra={'container': name})
            outcomes.append(ItemOutcome(STAGE_CONTAINERS, name, OutcomeStatus.OK, "stopped"))
            if self.config.stop_delay_seconds:
                self.sleep(self.config.stop_delay_seconds)
        return outcomes

    def restart_stopped(self) -> Tuple[List[str], List[ItemOutcome]]:
        """
        Start the containers recorded by ``stop_running``, in original order.

        Returns:
            (names successfully restarted, outcomes)
        """
        restarted = []
        outcomes = []
        for name in self.stopped:
            try:
                self.runner(
                    ['docker', 'start', name],
                    f"Starting container {name}",
                    timeout=self.config.command_timeout,
                )
            except SubprocessError as e:
                logger.error(f"Failed to start container {name}: {e}", extra={'container': name})
                outcomes.append(ItemOutcome(STAGE_CONTAINERS, name, OutcomeStatus.FAILED, f"restart failed: {e}"))
                continue
            restarted.append(name)
            logger.info(f"Started container: {name}", extra={'container': name})
            outcomes.append(ItemOutcome(STAGE_CONTAINERS, name, OutcomeStatus.OK, "restarted"))
        self.stopped = []
        return restarted, outcomes
