"""Process entry point: reporting server in the background, one probe in front."""

from __future__ import annotations

import asyncio
import logging
import signal
from typing import Any

from cosmos_probe.config import ConfigError, ProbeSettings, load_settings
from cosmos_probe.errors import ListenerError, MissingDependencyError
from cosmos_probe.observability.logging import bootstrap_logging, bootstrap_logging_from_settings
from cosmos_probe.probe.runner import ProbeReport, ProbeRunner
from cosmos_probe.reporting import start_reporting_server
from cosmos_probe.service import ProbeService

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_STARTUP_FAILURE = 1


async def run_service(
    settings: ProbeSettings,
    *,
    stop_event: asyncio.Event | None = None,
    service: ProbeService | None = None,
    install_signal_handlers: bool = False,
    **runner_overrides: Any,
) -> ProbeReport | None:
    """Serve reporting, run the probe once, then park until `stop_event` is set.

    Setting `stop_event` while the probe is still in flight cancels it; the
    probe is then never recorded and `None` is returned.

    Raises:
        ListenerError: If the reporting server cannot bind; the probe never runs.
        MissingDependencyError: If an Azure SDK package is not installed.
    """
    stop_event = stop_event or asyncio.Event()
    service = service or ProbeService.create(metrics_prefix=settings.metrics_prefix)

    server = await start_reporting_server(service, host=settings.host, port=settings.port)
    try:
        if install_signal_handlers:
            _install_signal_handlers(stop_event)

        runner = ProbeRunner.from_settings(settings, service, **runner_overrides)
        report = await _run_until_stopped(runner, stop_event)
        if report is None:
            return None
        logger.info(
            "Probe finished; serving metrics until stopped",
            extra={"classification": report.classification.value},
        )
        await stop_event.wait()
        return report
    finally:
        await server.stop()
        logger.info("Reporting server stopped")


async def _run_until_stopped(
    runner: ProbeRunner,
    stop_event: asyncio.Event,
) -> ProbeReport | None:
    probe = asyncio.create_task(runner.run(), name="cosmos-probe-run")
    stopper = asyncio.create_task(stop_event.wait(), name="cosmos-probe-stop")
    try:
        await asyncio.wait({probe, stopper}, return_when=asyncio.FIRST_COMPLETED)
    except asyncio.CancelledError:
        probe.cancel()
        raise
    finally:
        stopper.cancel()

    if probe.done():
        return probe.result()

    logger.warning(
        "Stop requested while probe was in flight; abandoning it",
        extra={"state": runner.state.value},
    )
    probe.cancel()
    await asyncio.wait({probe})
    return None


def _install_signal_handlers(stop_event: asyncio.Event) -> None:
    loop = asyncio.get_running_loop()
    for signum in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(signum, _request_stop, stop_event, signum)
        except (NotImplementedError, RuntimeError):
            logger.debug("Signal handlers unavailable for %s", signum)


def _request_stop(stop_event: asyncio.Event, signum: int) -> None:
    logger.info("Received signal %s; shutting down", signal.Signals(signum).name)
    stop_event.set()


def _log_startup(settings: ProbeSettings) -> None:
    logger.info(
        "Starting Cosmos MSI connectivity probe",
        extra={
            "account_url": settings.account_url,
            "table": settings.table_name,
            "identity_mode": settings.identity_mode,
            "port": settings.port,
        },
    )


def main() -> int:
    """Run the probe service; returns the process exit status."""
    try:
        settings = load_settings()
    except ConfigError as exc:
        bootstrap_logging(service="cosmos-msi-probe")
        logger.critical("Invalid configuration: %s", exc)
        return EXIT_STARTUP_FAILURE

    bootstrap_logging_from_settings(settings)
    _log_startup(settings)

    try:
        asyncio.run(run_service(settings, install_signal_handlers=True))
    except (ListenerError, MissingDependencyError) as exc:
        logger.critical("%s", exc)
        return EXIT_STARTUP_FAILURE
    return EXIT_OK
