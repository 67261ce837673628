"""
stolonctl Application

Command dispatcher: parses the command line into a Command plus a store
configuration, then runs exactly one cluster client operation.
"""

import argparse
import json
import logging
import sys
from typing import Callable, List, Optional, TextIO, BinaryIO, Tuple

from .core.config import CLIConfig, resolve_cli_config
from .core.constants import EnvVars, OutputConstants
from .core.exceptions import ParseError, StolonAdminError
from .core.models import (
    Command, GetConfigCommand, PatchConfigCommand, ReplaceConfigCommand, StatusCommand, ListCommand
)
from .core.payload import resolve_payload
from .core.protocols import ClusterClientProvider
from .core.utils import format_json, format_status_table, format_yaml, setup_cli_logging
from .store import ClusterClient

logger = logging.getLogger(__name__)

PROG = "stolonctl"
STDIN_MARKER = "-"


class CommandParser(argparse.ArgumentParser):
    """ArgumentParser that raises ParseError instead of exiting"""

    def error(self, message):
        raise ParseError(message, usage=self.format_usage())


def create_argument_parser() -> CommandParser:
    """Create the argument parser with the cluster subcommands"""

    # Source parser: arguments shared by commands that read a configuration payload
    source_parser = argparse.ArgumentParser(add_help=False)
    source_parser.add_argument('-f', '--file', default='', help='read the configuration document from this file')

    parser = CommandParser(
        prog=PROG,
        description='Administrative tool for stolon clusters',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  stolonctl cluster list
  stolonctl --store-backend consul cluster status mycluster --master
  stolonctl cluster patch mycluster --file patch.json
  cat config.json | stolonctl cluster replace mycluster -
        """
    )

    # Global flags, recognised before any subcommand
    parser.add_argument('-d', '--debug', action='store_true', help='Enable verbose logging to stderr')
    parser.add_argument('--store-endpoints',
                        help='a comma-delimited list of store endpoints (defaults: 127.0.0.1:2379 for etcd, '
                             f'127.0.0.1:8500 for consul) [${EnvVars.STORE_ENDPOINTS}]')
    parser.add_argument('--store-backend', help=f'store backend type (etcd or consul) [${EnvVars.STORE_BACKEND}]')
    parser.add_argument('--store-cert', help=f'path to the client server TLS cert file [${EnvVars.STORE_CERT}]')
    parser.add_argument('--store-key', help=f'path to the client server TLS key file [${EnvVars.STORE_KEY}]')
    parser.add_argument('--store-cacert',
                        help=f'path to the client server TLS trusted CA key file [${EnvVars.STORE_CA_CERT}]')

    subparsers = parser.add_subparsers(dest='command', metavar='command', required=True)
    cluster_parser = subparsers.add_parser('cluster', help='operations on existing cluster')
    cluster_commands = cluster_parser.add_subparsers(dest='cluster_command', metavar='cluster-command', required=True)

    config_parser = cluster_commands.add_parser('config', help='print configuration for cluster')
    config_parser.add_argument('cluster_name', metavar='cluster-name', help='cluster name')
    config_parser.add_argument('-o', '--output', choices=OutputConstants.CONFIG_FORMATS,
                               default=OutputConstants.JSON, help='output format')

    for name, help_text in (('patch', 'patch configuration for cluster'),
                            ('replace', 'replace configuration for cluster')):
        source_command = cluster_commands.add_parser(name, parents=[source_parser], help=help_text)
        source_command.set_defaults(command_parser=source_command)
        source_command.add_argument('cluster_name', metavar='cluster-name', help='cluster name')
        # The stdin marker must follow the cluster name
        source_command.add_argument('source', nargs='?', metavar=STDIN_MARKER,
                                    help='read the configuration document from stdin')

    status_parser = cluster_commands.add_parser('status', help='print cluster status')
    status_parser.add_argument('cluster_name', metavar='cluster-name', help='cluster name')
    status_parser.add_argument('--master', action='store_true', help='limit output to master only')
    status_parser.add_argument('--json', action='store_true', help='format output to json')

    cluster_commands.add_parser('list', help='list clusters')

    return parser


def _read_stdin_marker(args) -> bool:
    if args.source is None:
        return False
    if args.source != STDIN_MARKER:
        # Report against the subcommand so its usage line is shown
        args.command_parser.error(f"unexpected argument {args.source!r}, use '{STDIN_MARKER}' to read from stdin")
    return True


def parse_command(argv: List[str]) -> Tuple[Command, CLIConfig]:
    """
    Parse process arguments.

    Args:
        argv: Arguments without the program name

    Returns:
        Tuple of the Command and the fully resolved CLIConfig

    Raises:
        ParseError: If the invocation is malformed
    """
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    cli_config = resolve_cli_config(
        store_endpoints=args.store_endpoints,
        store_backend=args.store_backend,
        store_cert_file=args.store_cert,
        store_key_file=args.store_key,
        store_cacert_file=args.store_cacert,
        debug=args.debug,
    )

    name = args.cluster_command
    if name == 'config':
        command = GetConfigCommand(args.cluster_name, output=args.output)
    elif name == 'patch':
        command = PatchConfigCommand(args.cluster_name, args.file, _read_stdin_marker(args))
    elif name == 'replace':
        command = ReplaceConfigCommand(args.cluster_name, args.file, _read_stdin_marker(args))
    elif name == 'status':
        command = StatusCommand(args.cluster_name, master_only=args.master, output_json=args.json)
    elif name == 'list':
        command = ListCommand()
    else:
        parser.error(f"unknown command: {name}")

    return command, cli_config


class StolonCtl:
    """Runs parsed commands against a cluster client"""

    def __init__(self, client: ClusterClientProvider, stdout: Optional[TextIO] = None,
                 stdin: Optional[BinaryIO] = None):
        """
        Initialize the dispatcher

        Args:
            client: Cluster client handle
            stdout: Output stream (defaults to sys.stdout)
            stdin: Binary input stream for '-' payloads (defaults to sys.stdin)
        """
        self.client = client
        self.stdout = stdout
        self.stdin = stdin
        self._handlers = {
            GetConfigCommand: self.print_config,
            PatchConfigCommand: self.patch_config,
            ReplaceConfigCommand: self.replace_config,
            StatusCommand: self.status,
            ListCommand: self.list_clusters,
        }

    def run(self, command: Command) -> None:
        handler = self._handlers.get(type(command))
        if handler is None:
            raise TypeError(f"unsupported command: {command!r}")
        handler(command)

    def _write(self, text: str) -> None:
        out = self.stdout if self.stdout is not None else sys.stdout
        out.write(text + "\n")
        out.flush()

    def print_config(self, command: GetConfigCommand) -> None:
        cluster = self.client.get_cluster(command.cluster_name)
        config = cluster.config()
        if command.output == OutputConstants.YAML:
            self._write(format_yaml(config))
        else:
            self._write(format_json(config))

    def patch_config(self, command: PatchConfigCommand) -> None:
        data = resolve_payload(command.file_path, command.read_stdin, self.stdin)
        cluster = self.client.get_cluster(command.cluster_name)
        cluster.patch_config(data)

    def replace_config(self, command: ReplaceConfigCommand) -> None:
        data = resolve_payload(command.file_path, command.read_stdin, self.stdin)
        cluster = self.client.get_cluster(command.cluster_name)
        cluster.replace_config(data)

    def status(self, command: StatusCommand) -> None:
        cluster = self.client.get_cluster(command.cluster_name)
        status = cluster.status()
        if command.master_only:
            status = status.master_only()

        if command.output_json:
            self._write(json.dumps(status.to_dict(), indent=2))
        elif command.master_only and not status.nodes:
            # No master elected: nothing to print
            return
        else:
            self._write(format_status_table(status.to_dict()))

    def list_clusters(self, command: ListCommand) -> None:
        clusters = self.client.clusters()
        if clusters:
            self._write("\n".join(clusters))


def main(argv: Optional[List[str]] = None,
         client_factory: Callable[[CLIConfig], ClusterClientProvider] = ClusterClient,
         stdout: Optional[TextIO] = None, stdin: Optional[BinaryIO] = None) -> int:
    """
    stolonctl entry point

    Returns:
        Exit code (0 for success, 1 for a failed command, 2 for a usage error)
    """
    argv = sys.argv[1:] if argv is None else argv

    try:
        command, cli_config = parse_command(argv)
    except ParseError as e:
        sys.stderr.write(e.usage)
        print(f"{PROG}: error: {e}", file=sys.stderr)
        return 2

    setup_cli_logging(cli_config.debug)
    logger.debug(f"Running {command!r} against {cli_config.backend} at {','.join(cli_config.endpoint_list())}")

    client = None
    try:
        client = client_factory(cli_config)
        StolonCtl(client, stdout=stdout, stdin=stdin).run(command)
    except StolonAdminError as e:
        logger.debug("Command failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nOperation cancelled by user.", file=sys.stderr)
        return 1
    except Exception as e:
        logger.debug("Unexpected error", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        if client is not None:
            client.close()

    return 0


if __name__ == "__main__":
    sys.exit(main())
