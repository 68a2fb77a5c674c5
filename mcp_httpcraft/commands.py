"""
Argument builders for the httpcraft sub-commands.

Command formats:
- Request: httpcraft request --method GET <url> [--header "K: V"]... --json
- API:     httpcraft <api> <endpoint> [--profile P]... --json
- Chain:   httpcraft chain exec <chain> [--stop-on-failure] [--parallel] --json

Every builder ends with ``--json`` so stdout is machine-readable when the
tool honours it. Output that ignores the flag is still handled by the decoder.
"""

from typing import Any, Dict, List, Optional


def format_variable(value: Any) -> str:
    """Render a variable value the way httpcraft parses ``--var k=v``."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _common_args(
    profile: Optional[str],
    environment: Optional[str],
    variables: Optional[Dict[str, Any]],
    config_path: Optional[str],
) -> List[str]:
    args: List[str] = []
    if profile:
        args.extend(["--profile", profile])
    if environment:
        args.extend(["--env", environment])
    for key, value in (variables or {}).items():
        args.extend(["--var", f"{key}={format_variable(value)}"])
    if config_path:
        args.extend(["--config", config_path])
    return args


def build_request_args(
    url: str,
    method: str = "GET",
    headers: Optional[Dict[str, str]] = None,
    body: Optional[str] = None,
    profile: Optional[str] = None,
    variables: Optional[Dict[str, Any]] = None,
    config_path: Optional[str] = None,
    follow_redirects: bool = True,
    max_redirects: Optional[int] = None,
) -> List[str]:
    """Build args for a single ad-hoc request."""
    args = ["request", "--method", method.upper(), url]

    for name, value in (headers or {}).items():
        args.extend(["--header", f"{name}: {value}"])

    if body is not None:
        args.extend(["--data", body])

    args.extend(_common_args(profile, None, variables, config_path))

    if not follow_redirects:
        args.append("--no-follow-redirects")
    if max_redirects is not None:
        args.extend(["--max-redirects", str(max_redirects)])

    args.append("--json")
    return args


def build_api_args(
    api: str,
    endpoint: str,
    profile: Optional[str] = None,
    environment: Optional[str] = None,
    variables: Optional[Dict[str, Any]] = None,
    config_path: Optional[str] = None,
) -> List[str]:
    """Build args for calling a configured API endpoint."""
    args = [api, endpoint]
    args.extend(_common_args(profile, environment, variables, config_path))
    args.append("--json")
    return args


def build_chain_args(
    chain: str,
    profile: Optional[str] = None,
    environment: Optional[str] = None,
    variables: Optional[Dict[str, Any]] = None,
    config_path: Optional[str] = None,
    stop_on_failure: bool = False,
    parallel: bool = False,
) -> List[str]:
    """Build args for running a named chain."""
    args = ["chain", "exec", chain]
    args.extend(_common_args(profile, environment, variables, config_path))
    if stop_on_failure:
        args.append("--stop-on-failure")
    if parallel:
        args.append("--parallel")
    args.append("--json")
    return args
