#!/usr/bin/env python3
"""
dssdeploy CLI

Command-line interface for the external-deployment migration. Runs are
executed against the in-memory host, with a registry contract deployed first
the way the initial migration would have.

Usage:
    dssdeploy <command> [subcommand] [options]

Commands:
    deploy      Run the migration for a network and print the addresses
    plan        Show what a run would deploy, without touching a host
    config      Configuration management (show, get, validate)

Copyright (c) 2026 Momentum. All rights reserved.
"""

from __future__ import annotations

import argparse
import json
import sys
from enum import Enum
from typing import Any, List, Optional, Tuple

import yaml

from dssdeploy import __version__
from dssdeploy.config import ConfigError, ConfigManager, get_config_manager
from dssdeploy.core import resolve_path
from dssdeploy.errors import DeploymentError
from dssdeploy.host import InMemoryHost
from dssdeploy.migration import plan_deployment, run_external_deployment
from dssdeploy.network import FixedAddressTable
from dssdeploy.observability import DeployStage, configure_logging, get_logger
from dssdeploy.registry import deploy_registry

logger = get_logger("cli", DeployStage.CLI)


class OutputFormat(Enum):
    """Output format options."""
    JSON = "json"
    YAML = "yaml"
    TABLE = "table"


class CLIError(Exception):
    """CLI error with exit code."""
    def __init__(self, message: str, exit_code: int = 1):
        super().__init__(message)
        self.exit_code = exit_code


def format_output(data: Any, fmt: OutputFormat = OutputFormat.JSON) -> str:
    """Format data for output."""
    if fmt == OutputFormat.JSON:
        return json.dumps(data, indent=2, default=str)
    elif fmt == OutputFormat.YAML:
        return yaml.safe_dump(data, default_flow_style=False, sort_keys=False)
    return _format_table(data)


def _format_table(data: Any) -> str:
    """Format data as ASCII table."""
    if isinstance(data, list) and data and isinstance(data[0], dict):
        headers = list(data[0].keys())
        rows = [[str(row.get(h, "")) for h in headers] for row in data]
        widths = [max(len(h), max(len(r[i]) for r in rows)) for i, h in enumerate(headers)]

        lines = []
        lines.append(" | ".join(h.ljust(widths[i]) for i, h in enumerate(headers)))
        lines.append("-+-".join("-" * w for w in widths))
        for row in rows:
            lines.append(" | ".join(c.ljust(widths[i]) for i, c in enumerate(row)))
        return "\n".join(lines)
    elif isinstance(data, dict):
        return "\n".join(f"{k}: {v}" for k, v in data.items())
    return str(data)


class DeployCLI:
    """Main CLI application."""

    def __init__(self, manager: Optional[ConfigManager] = None):
        self._manager = manager
        self.parser = argparse.ArgumentParser(
            prog="dssdeploy",
            description="Deploy and register the stablecoin core for a network",
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )
        self.parser.add_argument(
            "--version", "-V",
            action="version",
            version=f"dssdeploy {__version__}",
        )
        self.parser.add_argument(
            "--format", "-f",
            choices=[f.value for f in OutputFormat],
            default="json",
            help="Output format (default: json)",
        )
        self.parser.add_argument(
            "--config", "-c",
            help="Configuration YAML file (in addition to the default locations)",
        )
        self.parser.add_argument(
            "--quiet", "-q",
            action="store_true",
            help="Suppress error output",
        )

        self.subparsers = self.parser.add_subparsers(dest="command", help="Commands")
        self._register_commands()

    @property
    def manager(self) -> ConfigManager:
        if self._manager is None:
            self._manager = get_config_manager()
        return self._manager

    def _register_commands(self) -> None:
        """Register all command groups."""
        for name, help_text in (
            ("deploy", "Run the external-deployment migration"),
            ("plan", "Preview a run without touching a host"),
        ):
            cmd = self.subparsers.add_parser(name, help=help_text)
            cmd.add_argument("--network", "-n", help="Target network (default: bootstrap network)")
            cmd.add_argument("--addresses", "-a", help="Fixed address table (JSON or YAML)")

        config = self.subparsers.add_parser("config", help="Configuration management")
        config_sub = config.add_subparsers(dest="subcommand")

        get = config_sub.add_parser("get", help="Get configuration value")
        get.add_argument("path", help="Config path (e.g., bootstrap.spot)")

        config_sub.add_parser("show", help="Show all configuration")
        config_sub.add_parser("validate", help="Validate configuration")

    def run(self, args: Optional[List[str]] = None) -> int:
        """Run the CLI."""
        parsed = self.parser.parse_args(args)

        if not parsed.command:
            self.parser.print_help()
            return 0

        try:
            self._load_config(parsed)
            errors = self.manager.validate()
            if errors:
                raise CLIError("Invalid configuration: " + "; ".join(errors))
            obs = self.manager.config.observability
            configure_logging(obs.log_level.get(), obs.log_format.get())

            fmt = OutputFormat(parsed.format)
            result = self._dispatch(parsed, fmt)
            if result is not None:
                print(format_output(result, fmt))
            return 0

        except CLIError as e:
            if not parsed.quiet:
                print(f"Error: {e}", file=sys.stderr)
            return e.exit_code

        except (DeploymentError, ConfigError, ValueError, OSError) as e:
            logger.error("Command failed", operation=parsed.command, error_code=type(e).__name__)
            if not parsed.quiet:
                print(f"Error: {e}", file=sys.stderr)
            return 1

    def _load_config(self, args: argparse.Namespace) -> None:
        self.manager.load_defaults()
        if args.config:
            self.manager.load_from_file(args.config)

    def _dispatch(self, args: argparse.Namespace, fmt: OutputFormat) -> Any:
        """Dispatch command to handler."""
        cmd = args.command
        subcmd = getattr(args, "subcommand", None)

        handler_name = f"_handle_{cmd}_{subcmd}" if subcmd else f"_handle_{cmd}"
        handler = getattr(self, handler_name, None)

        if handler is None:
            raise CLIError(f"Unknown command: {cmd} {subcmd or ''}")

        return handler(args, fmt)

    def _target_and_table(self, args: argparse.Namespace) -> Tuple[str, Optional[FixedAddressTable]]:
        config = self.manager.config
        target = args.network or config.network.bootstrap_network.get()
        if target == config.network.bootstrap_network.get() and not args.addresses:
            return target, None

        table_path = resolve_path(args.addresses or config.network.addresses_file.get())
        if not table_path.exists():
            logger.warning("Fixed address table not found", path=str(table_path), target=target)
            return target, None
        return target, FixedAddressTable.load(table_path)

    # Deployment handlers
    def _handle_deploy(self, args: argparse.Namespace, fmt: OutputFormat) -> Any:
        target, table = self._target_and_table(args)
        host = InMemoryHost(network=target)
        registry = deploy_registry(host)

        result = run_external_deployment(
            host,
            registry.address,
            target=target,
            table=table,
            config=self.manager.config,
        )

        if fmt == OutputFormat.TABLE:
            deployed = set(result.deployed)
            return [
                {"component": name, "address": address, "deployed": name in deployed}
                for name, address in result.addresses.items()
            ]
        output = result.to_dict()
        output["registry"] = {"address": registry.address, "count": registry.count()}
        return output

    def _handle_plan(self, args: argparse.Namespace, fmt: OutputFormat) -> Any:
        target, table = self._target_and_table(args)
        return plan_deployment(target, table, self.manager.config).to_dict()

    # Config handlers
    def _handle_config_get(self, args: argparse.Namespace, fmt: OutputFormat) -> Any:
        value = self.manager.get(args.path)
        return {"path": args.path, "value": str(value) if not isinstance(value, (bool, int, str, list)) else value}

    def _handle_config_show(self, args: argparse.Namespace, fmt: OutputFormat) -> Any:
        return self.manager.config.to_dict()

    def _handle_config_validate(self, args: argparse.Namespace, fmt: OutputFormat) -> Any:
        # run() has already rejected an invalid configuration.
        return {"valid": True, "errors": []}


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point."""
    cli = DeployCLI()
    return cli.run(argv)


if __name__ == "__main__":
    sys.exit(main())
