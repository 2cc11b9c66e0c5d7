"""
Command Line Interface for AWS Lambda Warmer.
"""

import click
import sys
from typing import Optional, Tuple
import logging

from tabulate import tabulate

from .config_module import ConfigManager, WarmupConfig
from .control import build_control_request
from .exceptions import WarmerException, WarmupFailedError
from .models import WarmupReport
from .orchestrator_module import WarmupOrchestrator
from .providers.aws import DryRunInvocationService
from .strategies import available_strategies
from .utils import format_duration, save_json_file

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def _print_report(report: WarmupReport):
    rows = []
    for round_no in report.rounds:
        for function_name, count in report.dispatched[round_no].items():
            rows.append([round_no + 1, function_name, count])

    click.echo("\n📋 WARMUP SUMMARY")
    click.echo("=" * 50)
    if rows:
        click.echo(tabulate(rows, headers=["Round", "Function", "Invocations"], tablefmt="simple"))
    click.echo("=" * 50)
    click.echo(f"Strategy: {report.strategy}")
    click.echo(f"Invocations: {report.invocation_count}")
    click.echo(f"Errors: {report.error_count}")
    click.echo(f"Next iteration: {report.next_iteration + 1}")
    click.echo(f"Duration: {format_duration(report.duration_ms)}")


@click.group()
@click.version_option(version='1.0.0', prog_name='aws-lambda-warmer')
def cli():
    """AWS Lambda Warmer - Keep your Lambda functions warm."""
    pass


@cli.command()
@click.option('--config', '-c', 'config_file', type=click.Path(exists=True),
              help='Configuration file path (JSON or YAML)')
@click.option('--function', '-f', 'functions', multiple=True,
              help='Function to warm up, may be repeated')
@click.option('--budget', '-b', type=float, default=60.0, show_default=True,
              help='Time budget of the pass in seconds')
@click.option('--strategy', '-s', type=click.Choice(available_strategies()),
              help='Warmup strategy')
@click.option('--invocation-count', '-n', type=int, help='Invocation count per function')
@click.option('--iteration-count', '-r', type=int, help='Number of rounds per pass')
@click.option('--alias', '-a', help='Alias to invoke functions with')
@click.option('--no-wait', is_flag=True, help='Do not wait between invocation rounds')
@click.option('--dry-run', is_flag=True, help='Simulate invocations without calling AWS')
@click.option('--output', '-o', type=click.Path(), help='Write the pass summary as JSON')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
def run(config_file: Optional[str], functions: Tuple[str, ...], budget: float,
        strategy: Optional[str], invocation_count: Optional[int], iteration_count: Optional[int],
        alias: Optional[str], no_wait: bool, dry_run: bool, output: Optional[str], verbose: bool):
    """Run a single warmup pass."""

    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    try:
        overrides = {
            'strategy': strategy,
            'invocation_count': invocation_count,
            'iteration_count': iteration_count,
            'warmup_function_alias': alias,
        }
        if no_wait:
            overrides['wait_between_invocation_rounds'] = False
        if functions:
            overrides['functions'] = {name: {} for name in functions}

        config_manager = ConfigManager()
        warmup_config = config_manager.load(config_file, **overrides)

        for warning in config_manager.validate_config(warmup_config):
            click.echo(f"⚠️  {warning}")

        click.echo("🚀 Starting Lambda warmup...")
        click.echo(f"   Strategy: {warmup_config.strategy}")
        click.echo(f"   Invocation count: {warmup_config.invocation_count}")
        click.echo(f"   Rounds: {warmup_config.iteration_count}")

        if dry_run:
            click.echo("\n⚠️  DRY RUN MODE - No actual Lambda invocations will be made")
            orchestrator = WarmupOrchestrator(warmup_config, invocation_service=DryRunInvocationService())
        else:
            orchestrator = WarmupOrchestrator(warmup_config)

        try:
            report = orchestrator.run_warmup(budget * 1000)
        finally:
            orchestrator.shutdown()

        _print_report(report)

        if output:
            save_json_file(report.to_dict(), output)
            click.echo(f"✅ Summary saved to: {output}")

        if report.error_count:
            sys.exit(2)

    except WarmupFailedError as e:
        click.echo(f"❌ {len(e.errors)} warmup invocations failed", err=True)
        click.echo(str(e), err=True)
        sys.exit(2)
    except WarmerException as e:
        click.echo(f"❌ Warmer error: {e}", err=True)
        sys.exit(1)
    except Exception as e:
        click.echo(f"❌ Unexpected error: {e}", err=True)
        if verbose:
            import traceback
            traceback.print_exc()
        sys.exit(1)


@cli.command()
@click.option('--output', '-o', default='warmer.config.json', help='Output configuration file path')
@click.option('--strategy', '-s', type=click.Choice(available_strategies()), default='standard',
              help='Warmup strategy to configure')
def init(output: str, strategy: str):
    """Generate a sample configuration file."""
    try:
        config = WarmupConfig(
            strategy=strategy,
            functions={
                'my-function': {},
                'my-other-function': {'alias': 'live', 'invocation_count': 4},
            },
        )
        config_dict = config.to_dict()
        # Machine specific defaults are left out of the sample
        for key in ('invocation_result_consumer_count', 'region', 'profile'):
            config_dict.pop(key, None)

        save_json_file(config_dict, output)

        click.echo(f"✅ Configuration file created: {output}")
        click.echo("\nNext steps:")
        click.echo("1. Edit the configuration file with the functions to warm up")
        click.echo(f"2. Run: aws-lambda-warmer run --config {output}")

    except Exception as e:
        click.echo(f"❌ Error creating configuration: {e}", err=True)
        sys.exit(1)


@cli.command()
def strategies():
    """List available warmup strategies."""
    descriptions = {
        'standard': 'Randomized, incrementally growing invocation counts',
        'stat-aware': 'Scales invocations by the active instances of each function',
    }

    click.echo("\n📋 Available Warmup Strategies")
    click.echo("=" * 50)
    for name in available_strategies():
        click.echo(f"{name:15} - {descriptions.get(name, '')}")
    click.echo("=" * 50)


@cli.command()
@click.argument('request-type')
@click.option('--arg', 'arguments', multiple=True, help='Argument as name=value')
@click.option('--prop', 'properties', multiple=True, help='Property as name=value')
def encode(request_type: str, arguments: Tuple[str, ...], properties: Tuple[str, ...]):
    """Print a control request payload."""
    try:
        args = dict(a.split('=', 1) for a in arguments)
        props = dict(p.split('=', 1) for p in properties)
        click.echo(build_control_request(request_type, args, props))
    except ValueError:
        click.echo("❌ Arguments and properties must be given as name=value", err=True)
        sys.exit(1)
    except WarmerException as e:
        click.echo(f"❌ {e}", err=True)
        sys.exit(1)


def main():
    """Main entry point for the CLI."""
    cli()


if __name__ == '__main__':
    main()
