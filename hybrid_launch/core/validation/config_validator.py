"""Rule engine for launch-config.json.

Every check runs regardless of earlier failures, and nothing here mutates the
document. ``validate_config`` returns the number of failures; callers treat a
nonzero count as a hard stop before any chain interaction.
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any, Literal

import click
from eth_utils import to_checksum_address

from hybrid_launch.core.constants import (
    MAX_SQRT_RATIO,
    MAX_TICK,
    MIN_SQRT_RATIO,
    MIN_TICK,
    TICK_SPACING,
    ZERO_ADDRESS,
    ZERO_BYTES32,
)
from hybrid_launch.core.utils.units import format_units, parse_int_string

Level = Literal["pass", "warn", "fail"]

LAUNCH_CONFIG_SCHEMA: dict[str, dict[str, str]] = {
    "token": {
        "name": "string",
        "symbol": "string",
        "maxSupply": "string",
        "liquidityReservePercent": "number",
        "projectReservePercent": "number",
        "sniperTaxDuration": "number",
        "unrevealedURI": "string",
    },
    "protocol": {
        "weth": "string",
        "algebraFactory": "string",
        "positionManager": "string",
        "swapRouter": "string",
    },
    "team": {
        "artist": "string",
        "dev": "string",
    },
    "liquidity": {
        "initialWethAmount": "string",
        "initialSqrtPriceX96": "string",
        "tickLower": "number",
        "tickUpper": "number",
    },
    "whitelist": {
        "merkleRoot": "string",
        "mintAmount": "string",
        "enableAtLaunch": "boolean",
    },
    "roles": {
        "artistRole": "number",
        "devRole": "number",
        "liquidityRole": "number",
        "metadataRole": "number",
    },
}

SECTION_TITLES: dict[str, str] = {
    "schema": "1. Schema / Structure",
    "token": "2. Token Fields",
    "protocol": "3. Protocol Addresses",
    "team": "4. Team Addresses",
    "liquidity": "5. Liquidity",
    "whitelist": "6. Whitelist",
    "roles": "7. Roles",
    "cross-field": "8. Cross-Field",
}

URI_PLACEHOLDER = "YOUR_CID"

_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")
_BYTES32_RE = re.compile(r"^0x[0-9a-fA-F]{64}$")


@dataclass(frozen=True)
class Finding:
    level: Level
    section: str
    message: str


@dataclass(frozen=True)
class ValidationReport:
    findings: tuple[Finding, ...] = ()

    def _count(self, level: Level) -> int:
        return sum(1 for f in self.findings if f.level == level)

    @property
    def fails(self) -> int:
        return self._count("fail")

    @property
    def warns(self) -> int:
        return self._count("warn")

    @property
    def passes(self) -> int:
        return self._count("pass")

    @property
    def ok(self) -> bool:
        return self.fails == 0

    def for_section(self, section: str) -> list[Finding]:
        return [f for f in self.findings if f.section == section]


@dataclass
class _Collector:
    section: str = "schema"
    findings: list[Finding] = field(default_factory=list)

    def passed(self, message: str) -> None:
        self.findings.append(Finding("pass", self.section, message))

    def warn(self, message: str) -> None:
        self.findings.append(Finding("warn", self.section, message))

    def fail(self, message: str) -> None:
        self.findings.append(Finding("fail", self.section, message))


def _json_type(value: Any) -> str:
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int | float):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if value is None:
        return "null"
    return "object"


def _as_int(value: Any) -> int | None:
    """JSON integer (``5`` or ``5.0``); booleans and strings are not integers."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def _is_address(value: Any) -> bool:
    return isinstance(value, str) and bool(_ADDRESS_RE.match(value))


def _is_checksummed(value: str) -> bool:
    try:
        return to_checksum_address(value) == value
    except ValueError:
        return False


def _is_power_of_two(n: int) -> bool:
    return n > 0 and (n & (n - 1)) == 0


def _section(config: dict[str, Any], key: str) -> dict[str, Any] | None:
    value = config.get(key)
    return value if isinstance(value, dict) and value else None


def check_schema(config: dict[str, Any], r: _Collector) -> None:
    r.section = "schema"
    for key, fields in LAUNCH_CONFIG_SCHEMA.items():
        if key not in config:
            r.fail(f'Missing required top-level key: "{key}"')
            continue
        section = config[key]
        if not isinstance(section, dict):
            r.fail(f'"{key}" must be an object')
            continue

        for sub_key, expected in fields.items():
            if sub_key not in section:
                r.fail(f'Missing required field: "{key}.{sub_key}"')
            elif _json_type(section[sub_key]) != expected:
                r.fail(
                    f'"{key}.{sub_key}" should be {expected}, '
                    f"got {_json_type(section[sub_key])}"
                )

        for sub_key in section:
            if sub_key not in fields:
                r.warn(f'Unexpected field: "{key}.{sub_key}" (ignored)')

    for key in config:
        if key not in LAUNCH_CONFIG_SCHEMA:
            r.warn(f'Unexpected top-level key: "{key}" (ignored)')

    r.passed("Schema structure checked")


def check_token(config: dict[str, Any], r: _Collector) -> None:
    r.section = "token"
    t = _section(config, "token")
    if t is None:
        return

    for key in ("name", "symbol"):
        value = t.get(key)
        if isinstance(value, str) and value:
            r.passed(f'{key}: "{value}"')
        else:
            r.fail(f"token.{key} must be a non-empty string")

    max_supply = parse_int_string(t.get("maxSupply"))
    if max_supply is None:
        r.fail(f'token.maxSupply cannot be parsed as an integer: "{t.get("maxSupply")}"')
    elif max_supply <= 0:
        r.fail("token.maxSupply must be > 0")
    else:
        r.passed(f"maxSupply: {max_supply}")
        if max_supply > 10**30:
            r.warn("token.maxSupply is very large (> 10^30)")
        if max_supply < 10**18:
            r.warn(
                "token.maxSupply is very small (< 10^18, less than 1 token with 18 decimals)"
            )

    liquidity_pct = _as_int(t.get("liquidityReservePercent"))
    if liquidity_pct is None or not 1 <= liquidity_pct <= 99:
        r.fail(
            "token.liquidityReservePercent must be integer in [1, 99], "
            f"got {t.get('liquidityReservePercent')}"
        )
    else:
        r.passed(f"liquidityReservePercent: {liquidity_pct}%")

    project_pct = _as_int(t.get("projectReservePercent"))
    if project_pct is None or not 0 <= project_pct <= 99:
        r.fail(
            "token.projectReservePercent must be integer in [0, 99], "
            f"got {t.get('projectReservePercent')}"
        )
    else:
        r.passed(f"projectReservePercent: {project_pct}%")

    # Sum is checked whenever both are integers, even out of range.
    if liquidity_pct is not None and project_pct is not None:
        total = liquidity_pct + project_pct
        if total >= 100:
            r.fail(
                f"liquidityReservePercent + projectReservePercent = {total} (must be < 100)"
            )
        else:
            r.passed(f"Reserve percent sum: {total}% (< 100)")

    duration = t.get("sniperTaxDuration")
    duration_int = _as_int(duration)
    if duration_int is None or duration_int <= 0:
        r.fail(f"token.sniperTaxDuration must be an integer > 0, got {duration}")
    else:
        r.passed(
            f"sniperTaxDuration: {duration_int}s ({duration_int / 3600:.1f}h)"
        )
        if duration_int < 60:
            r.warn("sniperTaxDuration < 60s, very short tax window")
        if duration_int > 86400:
            r.warn("sniperTaxDuration > 86400s (1 day), very long tax window")

    uri = t.get("unrevealedURI")
    if not isinstance(uri, str) or not uri:
        r.fail("token.unrevealedURI must be a non-empty string")
    else:
        r.passed(f"unrevealedURI: {uri}")
        if URI_PLACEHOLDER in uri:
            r.warn(f'token.unrevealedURI still contains placeholder "{URI_PLACEHOLDER}"')


def check_protocol_addresses(config: dict[str, Any], r: _Collector) -> None:
    r.section = "protocol"
    p = _section(config, "protocol")
    if p is None:
        return

    for key, value in p.items():
        if not _is_address(value):
            r.fail(f'protocol.{key}: invalid address format "{value}"')
        elif value == ZERO_ADDRESS:
            r.fail(f"protocol.{key}: must not be zero address")
        elif not _is_checksummed(value):
            r.fail(
                f"protocol.{key}: not EIP-55 checksummed. "
                f"Expected: {to_checksum_address(value)}"
            )
        else:
            r.passed(f"protocol.{key}: {value}")


def check_team_addresses(config: dict[str, Any], r: _Collector) -> None:
    r.section = "team"
    t = _section(config, "team")
    if t is None:
        return

    for key, value in t.items():
        if value == ZERO_ADDRESS:
            r.warn(f"team.{key}: zero address, will fall back to deployer")
        elif not _is_address(value):
            r.fail(f'team.{key}: invalid address format "{value}"')
        elif not _is_checksummed(value):
            r.fail(
                f"team.{key}: not EIP-55 checksummed. "
                f"Expected: {to_checksum_address(value)}"
            )
        else:
            r.passed(f"team.{key}: {value}")


def check_liquidity(config: dict[str, Any], r: _Collector) -> None:
    r.section = "liquidity"
    liq = _section(config, "liquidity")
    if liq is None:
        return

    weth_amount = parse_int_string(liq.get("initialWethAmount"))
    if weth_amount is None:
        r.fail(
            "liquidity.initialWethAmount cannot be parsed as an integer: "
            f'"{liq.get("initialWethAmount")}"'
        )
    elif weth_amount < 0:
        r.fail("liquidity.initialWethAmount must be >= 0")
    else:
        r.passed(f"initialWethAmount: {weth_amount} ({format_units(weth_amount)} ETH)")

    sqrt_price = parse_int_string(liq.get("initialSqrtPriceX96"))
    if sqrt_price is None:
        r.fail(
            "liquidity.initialSqrtPriceX96 cannot be parsed as an integer: "
            f'"{liq.get("initialSqrtPriceX96")}"'
        )
    elif sqrt_price < MIN_SQRT_RATIO:
        r.fail(f"liquidity.initialSqrtPriceX96 below TickMath minimum ({MIN_SQRT_RATIO})")
    elif sqrt_price >= MAX_SQRT_RATIO:
        r.fail("liquidity.initialSqrtPriceX96 above TickMath maximum")
    else:
        r.passed(f"initialSqrtPriceX96: {sqrt_price}")

    ticks: dict[str, int | None] = {}
    for key in ("tickLower", "tickUpper"):
        raw = liq.get(key)
        tick = _as_int(raw)
        ticks[key] = tick
        if tick is None or not MIN_TICK <= tick <= MAX_TICK:
            r.fail(
                f"liquidity.{key} must be integer in [{MIN_TICK}, {MAX_TICK}], got {raw}"
            )
        else:
            r.passed(f"{key}: {tick}")

    lower, upper = ticks["tickLower"], ticks["tickUpper"]
    if lower is None or upper is None:
        return

    if lower >= upper:
        r.fail(f"tickLower ({lower}) must be < tickUpper ({upper})")
    else:
        r.passed(f"Tick ordering: {lower} < {upper}")

    for key, tick in (("tickLower", lower), ("tickUpper", upper)):
        if tick % TICK_SPACING:
            r.fail(f"{key} ({tick}) is not divisible by tick spacing ({TICK_SPACING})")

    if lower <= MIN_TICK + TICK_SPACING and upper >= MAX_TICK - TICK_SPACING:
        r.warn("Tick range covers nearly the full range; double-check the config")


def check_whitelist(config: dict[str, Any], r: _Collector) -> None:
    r.section = "whitelist"
    w = _section(config, "whitelist")
    if w is None:
        return

    root = w.get("merkleRoot")
    if not isinstance(root, str) or not _BYTES32_RE.match(root):
        r.fail(
            "whitelist.merkleRoot must be a valid bytes32 hex "
            f'(66 chars with 0x prefix), got "{root}"'
        )
    else:
        r.passed(f"merkleRoot: {root}")

    mint_amount = parse_int_string(w.get("mintAmount"))
    if mint_amount is None:
        r.fail(
            f'whitelist.mintAmount cannot be parsed as an integer: "{w.get("mintAmount")}"'
        )
    elif mint_amount <= 0:
        r.fail("whitelist.mintAmount must be > 0")
    else:
        r.passed(f"mintAmount: {mint_amount}")

    enable = w.get("enableAtLaunch")
    if not isinstance(enable, bool):
        r.fail(f"whitelist.enableAtLaunch must be boolean, got {_json_type(enable)}")
    else:
        r.passed(f"enableAtLaunch: {str(enable).lower()}")

    if enable is True and isinstance(root, str) and root.lower() == ZERO_BYTES32:
        r.warn("enableAtLaunch is true but merkleRoot is zero; whitelist mints will fail")


def check_roles(config: dict[str, Any], r: _Collector) -> None:
    r.section = "roles"
    roles = _section(config, "roles")
    if roles is None:
        return

    seen: list[int] = []
    for key, raw in roles.items():
        value = _as_int(raw)
        if value is None or not 1 <= value <= 255:
            r.fail(f"roles.{key} must be integer in [1, 255], got {raw}")
        elif not _is_power_of_two(value):
            r.fail(f"roles.{key} ({value}) is not a power of 2, invalid role bit")
        elif value in seen:
            r.fail(f"roles.{key} ({value}) duplicates another role bit value")
        else:
            seen.append(value)
            r.passed(f"roles.{key}: {value} (bit {value.bit_length() - 1})")


def check_cross_field(config: dict[str, Any], r: _Collector) -> None:
    r.section = "cross-field"
    t = _section(config, "token")
    liq = _section(config, "liquidity")
    if t is None or liq is None:
        return

    max_supply = parse_int_string(t.get("maxSupply"))
    liquidity_pct = _as_int(t.get("liquidityReservePercent"))
    if max_supply is not None and liquidity_pct is not None:
        initial_amount = max_supply * liquidity_pct // 100
        if initial_amount <= 0:
            r.fail(
                "Derived initialCamelAmount (maxSupply * liquidityReservePercent / 100) is 0"
            )
        else:
            r.passed(f"Derived initialCamelAmount: {initial_amount}")

    if parse_int_string(liq.get("initialWethAmount")) == 0:
        r.passed("initialWethAmount is 0, single-sided LP mode will be used")

    if max_supply is not None and max_supply % 100:
        r.warn(
            "maxSupply is not evenly divisible by 100; percent calculations will truncate"
        )


CHECKS = (
    check_schema,
    check_token,
    check_protocol_addresses,
    check_team_addresses,
    check_liquidity,
    check_whitelist,
    check_roles,
    check_cross_field,
)


def run_validation(config: Any) -> ValidationReport:
    r = _Collector()
    if not isinstance(config, dict):
        r.fail(f"Launch config must be a JSON object, got {_json_type(config)}")
        config = {}
    for check in CHECKS:
        check(config, r)
    return ValidationReport(tuple(r.findings))


def _report_lines(report: ValidationReport) -> Iterator[str]:
    yield ""
    yield "=== LAUNCH CONFIG VALIDATION ==="
    for section, title in SECTION_TITLES.items():
        yield ""
        yield f"-- {title} --"
        for finding in report.for_section(section):
            yield f"  [{finding.level.upper()}] {finding.message}"

    yield ""
    yield "-- Summary --"
    yield f"  {report.passes} passed, {report.warns} warnings, {report.fails} failures"
    if report.fails:
        yield "  Result: FAILED, fix errors before deploying"
    elif report.warns:
        yield "  Result: PASSED with warnings, review before deploying"
    else:
        yield "  Result: PASSED"


def print_report(report: ValidationReport) -> None:
    for line in _report_lines(report):
        click.echo(line)


def validate_config(config: Any, *, silent: bool = False) -> int:
    report = run_validation(config)
    if not silent:
        print_report(report)
    return report.fails
