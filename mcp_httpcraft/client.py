"""
High-level client for the httpcraft executable.

Binds the process manager, the response decoder and the chain normalizer
into the calls tool handlers make. Unlike the core functions, which return
failures as values, these methods raise them.
"""

import logging
import time
from typing import Any, Dict, List, Optional, Sequence, Tuple

from mcp_httpcraft.chain import ChainOutcome, normalize_chain, validate_chain
from mcp_httpcraft.commands import build_api_args, build_chain_args, build_request_args
from mcp_httpcraft.config import Settings, get_settings
from mcp_httpcraft.decoding import (
    DecodedResponse,
    DecodeOptions,
    Parsed,
    decode,
    extract_error_message,
    probe_json,
)
from mcp_httpcraft.errors import (
    DecodeError,
    HttpCraftError,
    MalformedChainWarning,
)
from mcp_httpcraft.process import ProcessExecutor, ProcessInvocation, ProcessOutcome, RunResult

logger = logging.getLogger(__name__)


class HttpCraftCli:
    """Runs httpcraft commands and turns their output into structured results."""

    def __init__(self, settings: Optional[Settings] = None):
        self._settings = settings or get_settings()
        config = self._settings.httpcraft
        self._executor = ProcessExecutor(kill_grace=config.kill_grace)

    @property
    def path(self) -> str:
        return self._settings.httpcraft.path

    @property
    def decode_options(self) -> DecodeOptions:
        return DecodeOptions.from_config(self._settings.decoder)

    async def execute(
        self,
        args: Sequence[str],
        cwd: Optional[str] = None,
        timeout: Optional[float] = None,
        env: Optional[Dict[str, str]] = None,
    ) -> RunResult:
        """Run httpcraft with ``args``. Failures are returned, not raised."""
        config = self._settings.httpcraft
        invocation = ProcessInvocation(
            executable=config.path,
            args=args,
            cwd=cwd or config.cwd,
            env=env or {},
            timeout=timeout or config.timeout,
            max_bytes=config.max_buffer,
        )
        logger.debug(f"Executing: {invocation.describe()}")
        return await self._executor.run(invocation)

    async def execute_json(
        self,
        args: Sequence[str],
        cwd: Optional[str] = None,
        timeout: Optional[float] = None,
        env: Optional[Dict[str, str]] = None,
    ) -> Any:
        """Run httpcraft and parse stdout as one JSON document."""
        outcome = self._require_success(await self.execute(args, cwd, timeout, env))
        probe = probe_json(outcome.stdout)
        if not isinstance(probe, Parsed):
            raise DecodeError(f"Failed to parse JSON output: {probe.reason}")
        return probe.value

    async def execute_text(
        self,
        args: Sequence[str],
        cwd: Optional[str] = None,
        timeout: Optional[float] = None,
        env: Optional[Dict[str, str]] = None,
    ) -> List[str]:
        """Run httpcraft and return the non-empty lines of stdout."""
        outcome = self._require_success(await self.execute(args, cwd, timeout, env))
        return [line.strip() for line in outcome.stdout.splitlines() if line.strip()]

    async def get_version(self) -> str:
        outcome = self._require_success(await self.execute(["--version"]))
        return outcome.stdout.strip()

    async def is_available(self) -> bool:
        """Check whether the configured executable can be run at all."""
        try:
            version = await self.get_version()
        except HttpCraftError as e:
            logger.debug(f"httpcraft unavailable at {self.path}: {e}")
            return False
        logger.debug(f"httpcraft available at {self.path}: {version}")
        return True

    async def request(
        self,
        url: str,
        method: str = "GET",
        headers: Optional[Dict[str, str]] = None,
        body: Optional[str] = None,
        profile: Optional[str] = None,
        variables: Optional[Dict[str, Any]] = None,
        config_path: Optional[str] = None,
        follow_redirects: bool = True,
        max_redirects: Optional[int] = None,
        timeout: Optional[float] = None,
    ) -> DecodedResponse:
        """Make a single HTTP request through httpcraft."""
        args = build_request_args(
            url,
            method=method,
            headers=headers,
            body=body,
            profile=profile,
            variables=variables,
            config_path=config_path,
            follow_redirects=follow_redirects,
            max_redirects=max_redirects,
        )
        logger.info(f"Executing HTTP request: {method.upper()} {url}")
        return await self._decoded(args, timeout)

    async def call_api(
        self,
        api: str,
        endpoint: str,
        profile: Optional[str] = None,
        environment: Optional[str] = None,
        variables: Optional[Dict[str, Any]] = None,
        config_path: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> DecodedResponse:
        """Call an endpoint defined in httpcraft's API configuration."""
        args = build_api_args(
            api,
            endpoint,
            profile=profile,
            environment=environment,
            variables=variables,
            config_path=config_path,
        )
        logger.info(f"Executing API endpoint: {api}.{endpoint}")
        return await self._decoded(args, timeout)

    async def run_chain(
        self,
        chain: str,
        profile: Optional[str] = None,
        environment: Optional[str] = None,
        variables: Optional[Dict[str, Any]] = None,
        config_path: Optional[str] = None,
        stop_on_failure: bool = False,
        parallel: bool = False,
        timeout: Optional[float] = None,
    ) -> Tuple[ChainOutcome, MalformedChainWarning]:
        """Run a named chain and normalize its per-step results."""
        args = build_chain_args(
            chain,
            profile=profile,
            environment=environment,
            variables=variables,
            config_path=config_path,
            stop_on_failure=stop_on_failure,
            parallel=parallel,
        )
        logger.info(f"Executing chain: {chain}")

        started = time.monotonic()
        stdout, response = await self._run_and_decode(
            args, timeout or self._settings.httpcraft.chain_timeout
        )
        measured_ms = int((time.monotonic() - started) * 1000)

        # Steps live at the top level of the JSON, which the HTTP envelope drops
        probe = probe_json(stdout)
        payload = probe.value if isinstance(probe, Parsed) else response
        outcome = normalize_chain(payload, measured_ms)
        report = validate_chain(outcome)
        if not report.valid:
            logger.warning(f"Chain '{chain}' output is inconsistent: {'; '.join(report.errors)}")

        logger.info(
            f"Chain '{chain}' finished: success={outcome.success}, "
            f"{outcome.successful_steps}/{len(outcome.steps)} steps succeeded"
        )
        return outcome, report

    async def _decoded(self, args: Sequence[str], timeout: Optional[float]) -> DecodedResponse:
        _, response = await self._run_and_decode(args, timeout)
        return response

    async def _run_and_decode(
        self, args: Sequence[str], timeout: Optional[float]
    ) -> Tuple[str, DecodedResponse]:
        outcome = self._require_success(await self.execute(args, timeout=timeout))

        result = decode(outcome.stdout, self.decode_options)
        if isinstance(result, HttpCraftError):
            raise result

        if result.warnings:
            logger.warning(f"Response structure warnings: {'; '.join(result.warnings)}")
        return outcome.stdout, result

    def _require_success(self, result: RunResult) -> ProcessOutcome:
        """Raise terminal failures; return the outcome of a zero exit."""
        if isinstance(result, HttpCraftError):
            raise result

        error = result.error
        if error is not None:
            logger.error(
                f"httpcraft exited with code {result.exit_code}: "
                f"{extract_error_message(result.stderr)}"
            )
            raise error
        return result
