"""CLI entry point for the token gate."""

from __future__ import annotations

import asyncio
import json
import logging
import sys

import click

from tokengate.chain.oracle import RpcBalanceOracle
from tokengate.config import load_config
from tokengate.errors import InvalidRequirementError, OracleError
from tokengate.gate import ContentKind, TokenGate
from tokengate.models.records import AccessVerdict, WalletIdentity
from tokengate.models.requirements import Network, TokenStandard

EXIT_DENIED = 2


def _wallet(address: str) -> WalletIdentity:
    """Parse a wallet address or exit with an error."""
    try:
        return WalletIdentity(address)
    except ValueError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)


def _print_verdict(verdict: AccessVerdict) -> None:
    click.echo(f"Access:     {'GRANTED' if verdict.granted else 'DENIED'}")
    click.echo(f"Reason:     {verdict.reason.value}")
    if verdict.shortfall is not None:
        click.echo(f"Shortfall:  {verdict.shortfall}")
    if verdict.detail:
        click.echo(f"Detail:     {verdict.detail}")
    for check in verdict.checks:
        held = check.amount if check.amount is not None else "?"
        line = f"  [{check.index}] {check.standard.value} {check.token_address}: {check.reason.value} (held {held})"
        if check.error:
            line += f" - {check.error}"
        click.echo(line)


@click.group()
@click.option("-c", "--config", "config_path", default=None, help="Path to config TOML file")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, verbose: bool) -> None:
    """tokengate - token-gated access checks for courses and live sessions."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["verbose"] = verbose

    cfg = load_config(config_path)
    level = logging.DEBUG if verbose else getattr(logging, cfg.log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


# ── Info ───────────────────────────────────────────────


@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show gate configuration."""
    cfg = load_config(ctx.obj["config_path"])
    for network, url in sorted(cfg.rpc_urls.items()):
        click.echo(f"RPC {network + ':':<8} {url}")
    click.echo(f"RPC timeout: {cfg.rpc_timeout}s ({cfg.rpc_retries} retries)")
    click.echo(f"Cache:       {'on' if cfg.cache_enabled else 'off'} (max age {cfg.balance_max_age}s)")
    click.echo(f"Parallel:    {cfg.parallel_options}")
    click.echo(f"DB path:     {cfg.db_path}")
    for symbol, alias in sorted(cfg.token_aliases.items()):
        click.echo(f"Token {symbol}: {alias.standard.value} {alias.address} ({alias.network.value})")


# ── Access checks ──────────────────────────────────────


@cli.command()
@click.argument("wallet")
@click.option("--course", "course_id", type=int, default=None, help="Course ID")
@click.option("--session", "session_id", type=int, default=None, help="Live session ID")
@click.option("--requirement", "requirement_json", default=None, help="Ad-hoc requirement JSON")
@click.option("--json", "as_json", is_flag=True, help="Print the verdict as JSON")
@click.pass_context
def check(
    ctx: click.Context,
    wallet: str,
    course_id: int | None,
    session_id: int | None,
    requirement_json: str | None,
    as_json: bool,
) -> None:
    """Check whether WALLET may access a course, session or requirement."""
    targets = [t for t in (course_id, session_id, requirement_json) if t is not None]
    if len(targets) != 1:
        click.echo("Error: give exactly one of --course, --session, --requirement.", err=True)
        sys.exit(1)

    cfg = load_config(ctx.obj["config_path"])
    identity = _wallet(wallet)

    async def _check() -> AccessVerdict:
        gate = TokenGate.from_config(cfg)
        await gate.start()
        try:
            if requirement_json is not None:
                requirement = gate.decode(requirement_json)
                return await gate.check_requirement(requirement, identity)
            if course_id is not None:
                return await gate.check_access(ContentKind.COURSE, course_id, identity)
            return await gate.check_access(ContentKind.SESSION, session_id, identity)
        finally:
            await gate.close()

    try:
        verdict = asyncio.run(_check())
    except InvalidRequirementError as exc:
        click.echo(f"Error: invalid requirement: {exc}", err=True)
        sys.exit(1)

    if as_json:
        click.echo(json.dumps(verdict.to_dict(), indent=2))
    else:
        _print_verdict(verdict)
    if not verdict.granted:
        sys.exit(EXIT_DENIED)


@cli.command()
@click.argument("wallet")
@click.argument("token")
@click.option(
    "--standard",
    type=click.Choice([s.value for s in TokenStandard], case_sensitive=False),
    default=TokenStandard.ERC20.value,
    help="Token standard",
)
@click.option(
    "--network",
    type=click.Choice([n.value for n in Network], case_sensitive=False),
    default=Network.MAINNET.value,
    help="Network to query",
)
@click.pass_context
def balance(ctx: click.Context, wallet: str, token: str, standard: str, network: str) -> None:
    """Read WALLET's balance of TOKEN (bypasses the cache)."""
    cfg = load_config(ctx.obj["config_path"])
    identity = _wallet(wallet)
    alias = cfg.token_aliases.get(token.upper())
    token_address = alias.address if alias else token

    async def _balance():
        oracle = RpcBalanceOracle(cfg.rpc_urls, timeout=cfg.rpc_timeout, retries=cfg.rpc_retries)
        return await oracle.fetch_balance(
            identity, token_address, TokenStandard(standard.upper()), Network(network.lower()),
        )

    try:
        snapshot = asyncio.run(_balance())
    except OracleError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    click.echo(f"Wallet:     {snapshot.wallet}")
    click.echo(f"Token:      {snapshot.token_address} ({snapshot.standard.value}, {snapshot.network.value})")
    click.echo(f"Amount:     {snapshot.amount}")
    if snapshot.decimals:
        click.echo(f"Decimals:   {snapshot.decimals}")
    click.echo(f"Fetched at: {snapshot.fetched_at.isoformat()}")


# ── Requirements ───────────────────────────────────────


@cli.command("set-requirement")
@click.argument("kind", type=click.Choice([k.value for k in ContentKind]))
@click.argument("content_id", type=int)
@click.argument("requirement_json")
@click.pass_context
def set_requirement(ctx: click.Context, kind: str, content_id: int, requirement_json: str) -> None:
    """Store the token requirement of a course or live session."""
    cfg = load_config(ctx.obj["config_path"])

    async def _set():
        gate = TokenGate.from_config(cfg)
        await gate.start()
        try:
            return await gate.set_requirement(kind, content_id, requirement_json)
        finally:
            await gate.close()

    try:
        requirement = asyncio.run(_set())
    except InvalidRequirementError as exc:
        click.echo(f"Error: invalid requirement: {exc}", err=True)
        sys.exit(1)
    click.echo(f"Stored {requirement.kind.value} requirement for {kind} {content_id}")


@cli.command()
@click.pass_context
def requirements(ctx: click.Context) -> None:
    """List stored requirements."""
    cfg = load_config(ctx.obj["config_path"])

    async def _list():
        gate = TokenGate.from_config(cfg)
        await gate.start()
        try:
            return await gate.store.list_requirements()
        finally:
            await gate.close()

    records = asyncio.run(_list())
    if not records:
        click.echo("No requirements stored.")
        return
    for rec in records:
        click.echo(f"{rec.content_kind:<8} {rec.content_id:>6}  {json.dumps(rec.requirement)}")


@cli.command()
@click.option("--limit", type=int, default=20, help="Number of entries to show")
@click.pass_context
def activity(ctx: click.Context, limit: int) -> None:
    """Show recent access decisions."""
    cfg = load_config(ctx.obj["config_path"])

    async def _activity():
        gate = TokenGate.from_config(cfg)
        await gate.start()
        try:
            return await gate.store.get_recent_access(limit)
        finally:
            await gate.close()

    entries = asyncio.run(_activity())
    if not entries:
        click.echo("No access decisions recorded.")
        return
    for e in entries:
        outcome = "granted" if e.granted else "denied"
        line = f"{e.created_at}  {e.wallet}  {e.content_kind} {e.content_id}: {outcome} ({e.reason})"
        if e.shortfall:
            line += f" shortfall {e.shortfall}"
        if e.unchecked_options:
            line += f" unchecked {e.unchecked_options}"
        click.echo(line)


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
