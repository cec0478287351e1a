# =============================================================================
# main.py - CLI entry point
# =============================================================================

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path

from core.ad_client import ActiveDirectoryClient
from core.models import DomainTarget
from core.password_finder import PasswordFinder
from utils.config import Config
from utils.export_utils import ReportExporter


def setup_logging(level: str = "INFO") -> str:
    """Setup logging configuration with both console and file output"""
    from datetime import datetime

    # Create logs directory if it doesn't exist
    log_dir = Path("logs")
    log_dir.mkdir(exist_ok=True)

    # Generate date-stamped filename
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_filename = log_dir / f"password_finder_{timestamp}.log"

    formatter = logging.Formatter(
        fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(getattr(logging, level.upper()))
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # File handler always gets DEBUG
    file_handler = logging.FileHandler(log_filename, encoding='utf-8')
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)

    logger = logging.getLogger(__name__)
    logger.info(f"Logging initialized - Console: {level.upper()}, File: DEBUG")
    logger.info(f"Log file: {log_filename}")

    return str(log_filename)


def resolve_domains(args, config, ad_client):
    """Domains from the command line, then configuration, then forest discovery"""
    logger = logging.getLogger(__name__)

    if args.domain:
        targets = [DomainTarget(dns_name=name) for name in args.domain]
    elif config.ad_domains:
        targets = config.domain_targets()
    else:
        targets = ad_client.discover_domains()

    # Fill in NetBIOS names the discovery step did not provide
    resolved = []
    for target in targets:
        if not target.netbios_name:
            target = replace(target, netbios_name=ad_client.get_netbios_name(target.dns_name))
            if not target.netbios_name:
                logger.warning(f"No NetBIOS name found for {target.dns_name}")
        resolved.append(target)
    return resolved


def handle_find_password(args, config):
    """Resolve password state across the forest and export it"""
    logger = logging.getLogger(__name__)

    options = config.resolver_options()
    overrides = {
        'include_contacts': args.include_contacts or options.include_contacts,
        'as_list': True,
    }
    if args.key_field:
        overrides['key_field'] = args.key_field
    if args.extension_attribute:
        overrides['extension_attributes'] = args.extension_attribute
    if args.override_email_attribute:
        overrides['override_email_attribute'] = args.override_email_attribute
    if args.override_manager_attribute:
        overrides['override_manager_attribute'] = args.override_manager_attribute
    options = replace(options, **overrides)

    with ActiveDirectoryClient(
            config.ad_username, config.ad_password,
            server_url=config.ad_server, use_ssl=config.ad_use_ssl,
            page_size=config.ad_page_size
    ) as ad_client:
        domains = resolve_domains(args, config, ad_client)
        if not domains:
            logger.error("No domains to process")
            sys.exit(1)

        finder = PasswordFinder(ad_client, options)
        records = finder.find_passwords(domains)

    ReportExporter.write(records, args.output_file)
    logger.info("Processing completed successfully!")


def handle_list_domains(args, config):
    """Print the domains of the forest"""
    with ActiveDirectoryClient(
            config.ad_username, config.ad_password,
            server_url=config.ad_server, use_ssl=config.ad_use_ssl
    ) as ad_client:
        for target in ad_client.discover_domains():
            print(f"{target.dns_name}\t{target.netbios_name}")


def main():
    """Main CLI entry point"""
    parser = argparse.ArgumentParser(description="Forest password expiry resolver")
    subparsers = parser.add_subparsers(dest='command', help='Command')

    find_parser = subparsers.add_parser('find-password', help='Resolve password expiry for all accounts')
    find_parser.add_argument('output_file', help='Output file path (.csv or .xlsx)')
    find_parser.add_argument('--domain', action='append', help='Domain DNS name (repeatable)')
    find_parser.add_argument('--include-contacts', action='store_true', help='Include contacts in the output')
    find_parser.add_argument('--key-field', help='Record field used as output key')
    find_parser.add_argument('--extension-attribute', action='append',
                             help='Directory attribute copied into each record (repeatable)')
    find_parser.add_argument('--override-email-attribute', help='Attribute holding an alternate email')
    find_parser.add_argument('--override-manager-attribute', help='Attribute holding an alternate manager')

    subparsers.add_parser('list-domains', help='List forest domains')

    # Global arguments
    parser.add_argument('--log-level', default='INFO', choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        help='Logging level')

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    setup_logging(args.log_level)
    logger = logging.getLogger(__name__)

    # Load configuration
    config = Config()
    if not config.validate_ad_config():
        missing_vars = config.get_missing_ad_vars()
        logger.error(f"Missing required environment variables: {missing_vars}")
        sys.exit(1)

    try:
        if args.command == 'find-password':
            handle_find_password(args, config)
        elif args.command == 'list-domains':
            handle_list_domains(args, config)
        else:
            logger.error(f"Unknown command: {args.command}")
            sys.exit(1)

    except Exception as e:
        logger.error(f"Processing failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
