"""Warden CLI actor implemented with Typer.

Every command runs against one ``WardenRuntime`` held on the Typer context, so
commands issued through ``console`` share a single approval registry.
"""

from __future__ import annotations

import json
import shlex
import sys
from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from typing import Any, Callable

import click
import typer
from pydantic import BaseModel, ValidationError

from packages.warden_core import WardenRuntime, build_runtime
from packages.warden_shared.config import DEFAULT_CONFIG_PATH, write_config_fragment
from packages.warden_shared.envelope import Envelope, EnvelopeKind, new_meta
from packages.warden_shared.envelope.meta import EnvelopeMeta
from packages.warden_shared.errors import (
    DOMAIN_EXIT_CODE,
    IO_EXIT_CODE,
    ErrorDetail,
    codes,
    dependency_error,
    not_found_error,
    validation_error,
)
from packages.warden_shared.logging import configure_logging, get_logger
from services.action.approval_service.domain import ApprovalOutcome
from services.action.policy_service.domain import IntegrationToggle, PolicyUpdate
from services.action.policy_service.engine import parse_action_kind

_LOGGER = get_logger(__name__)

SUCCESS_EXIT_CODE = 0


@dataclass(frozen=True)
class CliConfig:
    """Global CLI options plus the runtime every command shares."""

    runtime: WardenRuntime
    principal: str
    source: str
    as_json: bool


def _serialize(value: Any) -> Any:
    """Convert result objects to JSON-serializable structures."""
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, (datetime, date, Path)):
        return str(value)
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True, exclude_none=True)
    if isinstance(value, dict):
        return {str(key): _serialize(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [_serialize(item) for item in value]
    return str(value)


def _emit_output(result: Any, as_json: bool) -> None:
    """Render command output in requested format."""
    data = _serialize(result)
    if as_json:
        typer.echo(json.dumps(data, sort_keys=True, separators=(",", ":")))
        return
    rendered = _render_human(data)
    if rendered is not None:
        typer.echo(rendered)
        return
    typer.echo("ok" if data is None else str(data))


def _emit_errors(errors: list[ErrorDetail], as_json: bool) -> None:
    """Render structured errors to stderr."""
    if as_json:
        typer.echo(
            json.dumps(
                {"errors": [item.to_dict() for item in errors]},
                sort_keys=True,
            ),
            err=True,
        )
        return
    for item in errors:
        typer.echo(f"error: {item.code}: {item.message}", err=True)


def _render_human(data: Any) -> str | None:
    """Return human-oriented rendering for recognized response shapes."""
    if isinstance(data, dict):
        if _looks_like_decision(data):
            return _render_decision(data)
        if _looks_like_outcome(data):
            return _render_outcome(data)
        if _looks_like_health(data):
            return _render_health(data)
    if isinstance(data, (dict, list)):
        return json.dumps(data, indent=2, sort_keys=True)
    return None


def _looks_like_decision(value: dict[str, Any]) -> bool:
    """Return True for policy decision payloads."""
    return set(value) == {"allow", "reason_code"}


def _looks_like_outcome(value: dict[str, Any]) -> bool:
    """Return True for approval outcome payloads."""
    return isinstance(value.get("ok"), bool) and "reason_code" in value


def _looks_like_health(value: dict[str, Any]) -> bool:
    """Return True for channel health payloads."""
    return "channel_enabled" in value and isinstance(value.get("accounts"), list)


def _render_decision(data: dict[str, Any]) -> str:
    verdict = "ALLOW" if data["allow"] else "DENY"
    if data["reason_code"] == "ALLOW":
        return verdict
    return f"{verdict} ({data['reason_code']})"


def _render_outcome(data: dict[str, Any]) -> str:
    request = data.get("request") or {}
    line = f"{'ok' if data['ok'] else 'denied'}: {data['reason_code']}"
    if request:
        line = f"{line} [{request.get('nonce', '')} -> {request.get('status', '')}]"
    return line


def _render_health(data: dict[str, Any]) -> str:
    """Render channel health for human scanning."""
    lines = [
        f"Channel: {_status_label(bool(data.get('channel_enabled')))} "
        f"({data.get('account_count', 0)} accounts)"
    ]
    for account in data.get("accounts", []):
        ready = bool(account.get("enabled")) and bool(account.get("configured"))
        line = f"  {account.get('account_id')}: {_status_label(ready)}"
        if not account.get("configured"):
            line = f"{line} (not configured)"
        elif not account.get("enabled"):
            line = f"{line} (disabled)"
        lines.append(f"{line} {account.get('webhook_path', '')}".rstrip())
    return "\n".join(lines)


def _status_label(ready: bool) -> str:
    return "healthy" if ready else "degraded"


def _exit_code_for(errors: list[ErrorDetail]) -> int:
    """Return the most severe exit code among ``errors``."""
    return max((item.category.exit_code for item in errors), default=DOMAIN_EXIT_CODE)


def _fail(cfg: CliConfig, errors: list[ErrorDetail]) -> None:
    _emit_errors(errors, cfg.as_json)
    raise typer.Exit(code=_exit_code_for(errors))


def _meta(cfg: CliConfig) -> EnvelopeMeta:
    return new_meta(kind=EnvelopeKind.COMMAND, source=cfg.source, principal=cfg.principal)


def _run_envelope(
    cfg: CliConfig,
    invoke: Callable[[EnvelopeMeta], Envelope[Any]],
    *,
    denied: Callable[[Any], bool] = lambda _: False,
) -> Any:
    """Call one service API and map the envelope to output and exit code."""
    envelope = invoke(_meta(cfg))
    if not envelope.ok:
        if envelope.payload is not None:
            _emit_output(envelope.payload, cfg.as_json)
        _fail(cfg, envelope.errors)
    _emit_output(envelope.payload, cfg.as_json)
    if denied(envelope.payload):
        raise typer.Exit(code=DOMAIN_EXIT_CODE)
    return envelope.payload


def _run_call(cfg: CliConfig, invoke: Callable[[], Any]) -> Any:
    """Call one exception-raising service API and map errors to exit codes."""
    try:
        return invoke()
    except ValueError as exc:
        _fail(cfg, [validation_error(str(exc), code=codes.INVALID_ARGUMENT)])
    except OSError as exc:
        _fail(cfg, [dependency_error(str(exc), code=codes.JOURNAL_WRITE_FAILED)])
    return None


def _emit_outcome(cfg: CliConfig, outcome: ApprovalOutcome) -> None:
    _emit_output(outcome, cfg.as_json)
    if not outcome.ok:
        raise typer.Exit(code=DOMAIN_EXIT_CODE)


def _require_config(ctx: typer.Context) -> CliConfig:
    """Return required CLI config from Typer context."""
    config = ctx.obj
    if not isinstance(config, CliConfig):
        raise RuntimeError("CLI configuration not initialized")
    return config


app = typer.Typer(no_args_is_help=True, help="Warden policy and approval interface")
approval_app = typer.Typer(help="Approval lifecycle commands")


@app.callback()
def main(
    ctx: typer.Context,
    config: Path = typer.Option(
        DEFAULT_CONFIG_PATH,
        "--config",
        envvar="WARDEN_CONFIG",
        help="Path to warden.yaml",
    ),
    principal: str = typer.Option("operator", help="Envelope principal"),
    source: str = typer.Option("cli", help="Envelope source"),
    as_json: bool = typer.Option(False, "--json", help="Emit JSON output"),
) -> None:
    """Build or reuse the runtime and store global options."""
    existing = ctx.obj
    if isinstance(existing, CliConfig):
        runtime = existing.runtime
    elif isinstance(existing, WardenRuntime):
        runtime = existing
    else:
        try:
            runtime = build_runtime(config_path=config)
        except ValidationError as exc:
            typer.echo(f"error: invalid configuration: {exc}", err=True)
            raise typer.Exit(code=DOMAIN_EXIT_CODE) from exc
        except ValueError as exc:
            typer.echo(f"error: {exc}", err=True)
            raise typer.Exit(code=DOMAIN_EXIT_CODE) from exc
        except OSError as exc:
            typer.echo(f"error: {exc}", err=True)
            raise typer.Exit(code=IO_EXIT_CODE) from exc

    logging_settings = runtime.settings.logging
    configure_logging(
        level=logging_settings.level,
        json_output=logging_settings.json_output,
        service=logging_settings.service,
        environment=logging_settings.environment,
        stream=sys.stderr,
    )
    ctx.obj = CliConfig(
        runtime=runtime,
        principal=principal,
        source=source,
        as_json=as_json,
    )


@app.command("health")
def health_command(ctx: typer.Context) -> None:
    """Show secret-free channel and account diagnostics."""
    cfg = _require_config(ctx)
    _run_envelope(cfg, lambda meta: cfg.runtime.policy.account_health(meta=meta))


@app.command("capabilities")
def capabilities_command(
    ctx: typer.Context,
    account_id: str | None = typer.Option(None, help="Account id"),
) -> None:
    """Show the capability snapshot and sample decisions."""
    cfg = _require_config(ctx)
    _run_envelope(
        cfg,
        lambda meta: cfg.runtime.policy.capabilities(meta=meta, account_id=account_id),
    )


@app.command("policy-status")
def policy_status_command(
    ctx: typer.Context,
    account_id: str | None = typer.Option(None, help="Account id"),
) -> None:
    """Show the effective policy for one account."""
    cfg = _require_config(ctx)
    _run_envelope(
        cfg,
        lambda meta: cfg.runtime.policy.policy_status(meta=meta, account_id=account_id),
    )


@app.command("policy-check")
def policy_check_command(
    ctx: typer.Context,
    kind: str = typer.Argument(..., help="read, executeTx, pay or delegate"),
    integration: str | None = typer.Option(None, help="Integration name"),
    account_id: str | None = typer.Option(None, help="Account id"),
) -> None:
    """Evaluate one action; exits 3 when denied."""
    cfg = _require_config(ctx)
    _run_envelope(
        cfg,
        lambda meta: cfg.runtime.policy.check_policy(
            meta=meta,
            kind=parse_action_kind(kind),
            integration=integration,
            account_id=account_id,
        ),
        denied=lambda decision: not decision.allow,
    )


@app.command("policy-set")
def policy_set_command(
    ctx: typer.Context,
    account_id: str = typer.Option("default", help="Account id"),
    actor_user_id: str | None = typer.Option(None, help="Acting owner user id"),
    mode: str | None = typer.Option(None, help="READ_ONLY, CONFIRM_ALWAYS or BOUNDED_AUTO"),
    max_per_tx_usd: float | None = typer.Option(None, help="Per-transaction limit"),
    max_per_day_usd: float | None = typer.Option(None, help="Daily limit"),
    integration: str | None = typer.Option(None, help="Integration to toggle"),
    enabled: bool | None = typer.Option(None, "--enabled/--disabled"),
    exec_enabled: bool | None = typer.Option(None, "--exec-enabled/--exec-disabled"),
    pay_enabled: bool | None = typer.Option(None, "--pay-enabled/--pay-disabled"),
    add_owner: list[str] = typer.Option([], help="Owner user id to add"),
    remove_owner: list[str] = typer.Option([], help="Owner user id to remove"),
) -> None:
    """Apply an owner-gated policy change and persist it to the config file."""
    cfg = _require_config(ctx)
    flags = {
        "enabled": enabled,
        "exec_enabled": exec_enabled,
        "pay_enabled": pay_enabled,
    }
    toggles = {key: value for key, value in flags.items() if value is not None}
    if toggles and not integration:
        _fail(
            cfg,
            [validation_error("--integration is required for toggles", code=codes.INVALID_ARGUMENT)],
        )

    try:
        update = PolicyUpdate(
            mode=mode,
            max_per_tx_usd=max_per_tx_usd,
            max_per_day_usd=max_per_day_usd,
            integrations=(
                {integration: IntegrationToggle(**toggles)}
                if integration
                else {}
            ),
            add_owner_user_ids=tuple(add_owner),
            remove_owner_user_ids=tuple(remove_owner),
        )
    except ValidationError as exc:
        _fail(
            cfg,
            [
                validation_error(str(item["msg"]), code=codes.INVALID_ARGUMENT)
                for item in exc.errors()
            ],
        )
        return

    envelope = cfg.runtime.policy.update_policy(
        meta=_meta(cfg),
        account_id=account_id,
        actor_user_id=actor_user_id,
        update=update,
    )
    if not envelope.ok:
        _fail(cfg, envelope.errors)
        return

    result = envelope.payload
    try:
        written = write_config_fragment(
            fragment={"channel": result.fragment},
            config_path=cfg.runtime.config_path,
        )
    except OSError as exc:
        _LOGGER.error("Policy fragment write failed", exc_info=True)
        _fail(
            cfg,
            [dependency_error(f"config write failed: {exc}", code=codes.CONFIG_WRITE_FAILED)],
        )
        return

    _emit_output(
        {
            "account_id": result.account_id,
            "actor_user_id": result.actor_user_id,
            "changes": list(result.changes),
            "config_path": str(written),
        },
        cfg.as_json,
    )


@approval_app.command("create")
def approval_create_command(
    ctx: typer.Context,
    account_id: str = typer.Option("default", help="Account id"),
    action: str = typer.Option(..., help="Action awaiting approval"),
    requested_by: str = typer.Option(..., help="Requesting user id"),
    payload_hash: str = typer.Option(..., help="Hash of the action payload"),
    ttl_seconds: float | None = typer.Option(None, help="Override TTL in seconds"),
) -> None:
    """Register a pending approval and print its nonce."""
    cfg = _require_config(ctx)
    request = _run_call(
        cfg,
        lambda: cfg.runtime.approvals.create(
            account_id=account_id,
            action=action,
            requested_by=requested_by,
            payload_hash=payload_hash,
            ttl_seconds=ttl_seconds,
        ),
    )
    _emit_output(request, cfg.as_json)


@approval_app.command("show")
def approval_show_command(
    ctx: typer.Context,
    request_id: str = typer.Argument(..., help="Approval request id"),
) -> None:
    """Show one approval request by id."""
    cfg = _require_config(ctx)
    request = _run_call(cfg, lambda: cfg.runtime.approvals.lookup(request_id=request_id))
    if request is None:
        _fail(cfg, [not_found_error(f"approval request {request_id} not found")])
    _emit_output(request, cfg.as_json)


@approval_app.command("list")
def approval_list_command(
    ctx: typer.Context,
    limit: int | None = typer.Option(None, min=1, help="Maximum number of requests"),
) -> None:
    """List approval requests, newest first."""
    cfg = _require_config(ctx)
    requests = _run_call(cfg, lambda: cfg.runtime.approvals.list(limit=limit))
    _emit_output(list(requests or ()), cfg.as_json)


@approval_app.command("consume")
def approval_consume_command(
    ctx: typer.Context,
    nonce: str = typer.Argument(..., help="Approval nonce"),
    actor_user_id: str = typer.Option(..., help="Acting user id"),
) -> None:
    """Approve a pending request; exits 3 when denied."""
    cfg = _require_config(ctx)
    outcome = _run_call(
        cfg,
        lambda: cfg.runtime.approvals.consume(nonce=nonce, actor_user_id=actor_user_id),
    )
    _emit_outcome(cfg, outcome)


@approval_app.command("reject")
def approval_reject_command(
    ctx: typer.Context,
    nonce: str = typer.Argument(..., help="Approval nonce"),
    actor_user_id: str = typer.Option(..., help="Acting user id"),
) -> None:
    """Reject a pending request; exits 3 when denied."""
    cfg = _require_config(ctx)
    outcome = _run_call(
        cfg,
        lambda: cfg.runtime.approvals.reject(nonce=nonce, actor_user_id=actor_user_id),
    )
    _emit_outcome(cfg, outcome)


@app.command("approval-phrase")
def approval_phrase_command(
    ctx: typer.Context,
    text: str = typer.Argument(..., help="e.g. 'APPROVE TX K7PQ2M --actor-user-id u1'"),
) -> None:
    """Apply a free-text approve/reject phrase."""
    cfg = _require_config(ctx)
    outcome = _run_call(cfg, lambda: cfg.runtime.approvals.apply_phrase(text=text))
    _emit_outcome(cfg, outcome)


@app.command("intent")
def intent_command(
    ctx: typer.Context,
    message: str = typer.Argument(..., help="Free-text message"),
) -> None:
    """Label a message with its best-effort intent."""
    cfg = _require_config(ctx)
    parsed = _run_call(cfg, lambda: cfg.runtime.intents.parse(message=message))
    _emit_output(parsed, cfg.as_json)


@app.command("context-status")
def context_status_command(
    ctx: typer.Context,
    dm: bool = typer.Option(False, "--dm/--group", help="Direct message or group"),
    owner_present: bool = typer.Option(False, help="Owner takes part"),
    agents_only: bool = typer.Option(False, help="Only agents take part"),
    participants: int | None = typer.Option(None, min=0, help="Participant count"),
) -> None:
    """Classify the trust context of a conversation."""
    cfg = _require_config(ctx)
    context = cfg.runtime.intents.classify_context(
        is_dm=dm,
        owner_present=owner_present,
        participants_are_agents_only=agents_only,
        participant_count=participants,
    )
    _emit_output(context, cfg.as_json)


@app.command("journal")
def journal_command(
    ctx: typer.Context,
    limit: int | None = typer.Option(None, min=1, help="Number of recent entries"),
) -> None:
    """Tail the audit journal, oldest first."""
    cfg = _require_config(ctx)
    entries = _run_call(cfg, lambda: cfg.runtime.journal.read_recent(limit=limit))
    _emit_output(
        [entry.event if entry.event is not None else entry.raw for entry in entries or ()],
        cfg.as_json,
    )


@app.command("console")
def console_command(ctx: typer.Context) -> None:
    """Run one command per stdin line against this process's runtime."""
    cfg = _require_config(ctx)
    command = typer.main.get_command(app)
    for raw in sys.stdin:
        line = raw.strip()
        if line == "" or line.startswith("#"):
            continue
        if line in {"exit", "quit"}:
            break
        try:
            args = shlex.split(line)
        except ValueError as exc:
            typer.echo(f"error: {exc}", err=True)
            continue
        if cfg.as_json and "--json" not in args:
            args = ["--json", *args]
        try:
            code = command.main(
                args=args,
                prog_name="warden",
                obj=cfg,
                standalone_mode=False,
            )
        except click.ClickException as exc:
            typer.echo(f"error: {exc.format_message()}", err=True)
            continue
        except click.Abort:
            break
        if isinstance(code, int) and code != SUCCESS_EXIT_CODE:
            typer.echo(f"exit {code}", err=True)


app.add_typer(approval_app, name="approval")


if __name__ == "__main__":
    app()
