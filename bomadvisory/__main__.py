"""Main CLI entry point for bomadvisory."""

import argparse
import logging
import sys
from typing import List, Optional, Tuple

from . import __version__
from .advisory import assemble, write_advisory
from .catalog import ComponentTable, ManifestComponentCatalog, PomComponentCatalog
from .config import AdvisoryConfig
from .decomposition import ContractCheckingVisitor, DecomposedBomReleasesLogger, group_by_group_id
from .exceptions import BomAdvisoryError, ConfigurationError
from .formatters import OutputFormatter, ReleaseTreeFormatter
from .jira import DEFAULT_JIRA_SERVER, JiraClient
from .models import PackageCoordinate
from .platform_bom import QUARKUS_BOM, build_platform_bom_config
from .pom import LocalPomResolver
from .reconciler import reconcile
from .repository import MAVEN_CENTRAL_URL, MavenRepository

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False, log_level: Optional[str] = None):
    """Configure logging based on verbosity flags."""
    if log_level:
        level = getattr(logging, log_level.upper(), logging.WARNING)
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING

    logging.basicConfig(
        level=level,
        format='%(levelname)s: %(message)s',
        force=True,
    )


def parse_base_bom(value: str) -> Tuple[str, str]:
    """Parse a groupId:artifactId pair."""
    parts = value.split(':')
    if len(parts) != 2 or not all(parts):
        raise ConfigurationError(f"Expected groupId:artifactId for the base BOM, got {value}")
    return parts[0], parts[1]


def load_components(config: AdvisoryConfig, bom: PackageCoordinate) -> ComponentTable:
    """Load the target BOM's component table from a manifest if given, else from the repository."""
    if config.manifest:
        return ManifestComponentCatalog(config.manifest).load(bom.group_id, bom.artifact_id, bom.version)
    with MavenRepository(config.maven_repository) as repository:
        return PomComponentCatalog(repository).load(bom.group_id, bom.artifact_id, bom.version)


def handle_cve_mapping(args) -> int:
    """Handle the 'cve-mapping' subcommand."""
    setup_logging(args.verbose, args.loglevel)

    config = AdvisoryConfig.from_args(args)
    token = config.resolve_jira_token()
    bom = config.bom_coordinates()
    logger.info(f"Mapping CVEs fixed in {config.jira_project} {config.jira_version} against {bom.to_compact_string()}")

    with JiraClient(config.jira_server, token) as jira:
        vulnerable = jira.read_vulnerable_artifacts(config.jira_project, config.jira_version)
    logger.info(f"Read {len(vulnerable)} vulnerabilities from {config.jira_server}")

    components = load_components(config, bom)
    mapping = reconcile(vulnerable, components, config.jira_version)
    logger.info(f"Found fixes for {len(mapping)} of {len(vulnerable)} vulnerabilities")

    write_advisory(assemble(bom, mapping), config.output_file)
    return 0


def handle_platform_bom(args) -> int:
    """Handle the 'platform-bom' subcommand."""
    setup_logging(args.verbose, args.loglevel)

    config = build_platform_bom_config(LocalPomResolver(args.pom), parse_base_bom(args.base_bom))
    if args.output_format == 'json':
        print(OutputFormatter.format_as_json(config))
    else:
        print(OutputFormatter.format_as_list(config))
    return 0


def handle_releases(args) -> int:
    """Handle the 'releases' subcommand."""
    setup_logging(args.verbose, args.loglevel)

    config = build_platform_bom_config(LocalPomResolver(args.pom), parse_base_bom(args.base_bom))
    decomposed = group_by_group_id(config.bom_artifact, (config.base_artifact,) + config.direct_artifacts)

    formatter = ReleaseTreeFormatter(show_artifacts=args.artifacts)
    decomposed.visit(ContractCheckingVisitor(formatter))
    decomposed.visit(DecomposedBomReleasesLogger(log_artifacts=args.artifacts))
    print(formatter.format())
    return 0


def _add_logging_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument('-v', '--verbose', action='store_true', help='Verbose output')
    parser.add_argument('--loglevel', choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'], help='Set log level')


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='bomadvisory',
        description='Platform BOM analysis and CVE to fixed component mapping'
    )
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')

    subparsers = parser.add_subparsers(dest='command', help='Subcommands')

    # cve-mapping command
    cve_parser = subparsers.add_parser('cve-mapping', help='Map CVEs fixed in a release to the fixing components')
    cve_parser.add_argument('-t', '--jira-token',
                            help='Personal Access Token for the Jira server, could also be set using '
                                 'environment variable JIRA_TOKEN')
    cve_parser.add_argument('-s', '--jira-server', default=DEFAULT_JIRA_SERVER,
                            help=f'The Jira server to connect to. Default: {DEFAULT_JIRA_SERVER}')
    cve_parser.add_argument('--jira-project', default='QUARKUS', help='The Jira project key. Default: QUARKUS')
    cve_parser.add_argument('--jira-version', required=True, help='The target fixVersion of the project in Jira')
    cve_parser.add_argument('--bom', required=True, help='Platform BOM as groupId:artifactId:version')
    cve_parser.add_argument('--output-file',
                            help='Write the result to this path instead of the console')
    cve_parser.add_argument('--maven-repository', default=MAVEN_CENTRAL_URL,
                            help=f'Maven repository to read the BOM from. Default: {MAVEN_CENTRAL_URL}')
    cve_parser.add_argument('--manifest',
                            help='CycloneDX manifest of the BOM (file or URL), used instead of the BOM POM')
    _add_logging_args(cve_parser)
    cve_parser.set_defaults(func=handle_cve_mapping)

    # platform-bom command
    bom_parser = subparsers.add_parser('platform-bom', help='Show the managed dependencies of a local platform BOM')
    bom_parser.add_argument('pom', help='Path to the platform BOM pom.xml')
    bom_parser.add_argument('--base-bom', default=':'.join(QUARKUS_BOM),
                            help='groupId:artifactId of the base BOM. Default: io.quarkus:quarkus-bom')
    bom_parser.add_argument('--format', dest='output_format', default='list', choices=['list', 'json'],
                            help='Output format (list, json). Default: list')
    _add_logging_args(bom_parser)
    bom_parser.set_defaults(func=handle_platform_bom)

    # releases command
    releases_parser = subparsers.add_parser('releases', help='Group the managed dependencies of a local BOM by release')
    releases_parser.add_argument('pom', help='Path to the platform BOM pom.xml')
    releases_parser.add_argument('--base-bom', default=':'.join(QUARKUS_BOM),
                                 help='groupId:artifactId of the base BOM. Default: io.quarkus:quarkus-bom')
    releases_parser.add_argument('--artifacts', action='store_true', help='List the artifacts of each release')
    _add_logging_args(releases_parser)
    releases_parser.set_defaults(func=handle_releases)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    # Execute command
    try:
        return args.func(args)
    except BomAdvisoryError as e:
        logger.error(e.message)
        print(f"Error: {e.message}", file=sys.stderr)
        return 1
    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
