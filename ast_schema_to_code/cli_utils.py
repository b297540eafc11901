"""
CLI utilities for command line reconstruction and introspection.
"""

from pathlib import Path

import click

COMMAND_NAME = "ast_schema_to_code"


def reconstruct_command_line(click_command: click.Command) -> str:
    """
    Reconstruct command line from current Click context using introspection.

    Options left at their default are omitted, and existing paths are
    shortened to their file name so the result does not depend on the
    machine that ran the generator.

    Args:
        click_command: Click command object for introspection

    Returns:
        Reconstructed command line string
    """
    try:
        ctx = click.get_current_context()
        cli_args = ctx.params
    except RuntimeError:
        # No active context, return basic command
        return COMMAND_NAME

    cmd_parts = [COMMAND_NAME]

    for param in click_command.params:
        if not isinstance(param, click.Option) or param.name not in cli_args:
            continue

        value = cli_args[param.name]
        # Flags, empty values and defaults do not change the output
        if param.is_flag or not value or value == param.default:
            continue

        flag = param.opts[0] if param.opts else f"--{param.name}"
        values = value if isinstance(value, (list, tuple)) else [value]
        for item in values:
            cmd_parts.extend([flag, _format_value(item)])

    return " ".join(cmd_parts)


def _format_value(value) -> str:
    # Convert file paths to just filenames for cleaner display
    if isinstance(value, (str, Path)):
        path_obj = Path(str(value))
        return path_obj.name if path_obj.exists() else str(value)
    return str(value)
