import json
import logging

import click

from .cli_utils import reconstruct_command_line
from .pipeline import CodeGeneratorConfig, PipelineGenerator


@click.command()
@click.option("--schema", "-s", default="ast.yaml", type=click.Path(dir_okay=False), help="Schema resource (.yaml, .yml or .json)")
@click.option("--output", "-o", default="generated.py", type=click.Path(dir_okay=False), help="Generated module path")
@click.option("--config", "-c", default=None, type=click.Path(exists=True, dir_okay=False, resolve_path=True), help="JSON generator configuration")
@click.option("--feature", "-f", "features", multiple=True, help="Enable a feature gate (repeatable)")
@click.option("--verbose", "-v", is_flag=True, default=False, help="Log every pipeline phase to stderr")
def ast_schema_to_code(schema, output, config, features, verbose):
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING, format="%(levelname)s %(name)s: %(message)s")

    if config is not None:
        with open(config) as f:
            config = CodeGeneratorConfig.from_dict(json.load(f))
    else:
        config = CodeGeneratorConfig()

    # CLI features add to the ones from the config file
    for feature in features:
        if feature not in config.features:
            config.features.append(feature)

    command = reconstruct_command_line(ast_schema_to_code)
    PipelineGenerator.from_file(schema, config, command).write(output)

    click.echo("AST file generated.")
