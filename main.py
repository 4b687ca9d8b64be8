import os
import sys
import argparse
import logging

from app import AnfReplicationApplication
from config import ConfigurationManager, str_to_bool
from modules.anf_exceptions import ConfigurationError
from modules.anf_logger import setup_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Azure NetApp Files cross-region replication sample"
    )
    parser.add_argument(
        "--subscription-id",
        default=os.getenv("AZURE_SUBSCRIPTION_ID"),
        type=str,
    )
    parser.add_argument(
        "--tenant-id",
        default=os.getenv("ARM_TENANT_ID"),
        type=str,
    )
    parser.add_argument(
        "--client-id",
        default=os.getenv("ARM_CLIENT_ID"),
        type=str,
    )
    parser.add_argument(
        "--client-secret",
        default=os.getenv("ARM_CLIENT_SECRET"),
        type=str,
    )
    parser.add_argument(
        "--cleanup",
        dest="should_cleanup",
        default=os.getenv("ANF_SHOULD_CLEANUP"),
        type=str_to_bool,
        help="Delete every created resource at the end of the run",
    )
    parser.add_argument(
        "--poll-interval",
        default=os.getenv("ANF_POLL_INTERVAL_SECONDS"),
        type=int,
    )
    parser.add_argument(
        "--poll-retries",
        default=os.getenv("ANF_POLL_RETRIES"),
        type=int,
    )
    parser.add_argument(
        "--delete-poll-retries",
        default=os.getenv("ANF_DELETE_POLL_RETRIES"),
        type=int,
    )
    parser.add_argument(
        "--wait-for-mirrored",
        default=os.getenv("ANF_WAIT_FOR_MIRRORED"),
        type=str_to_bool,
    )
    parser.add_argument(
        "--snapshot-name",
        default=os.getenv("ANF_SNAPSHOT_NAME"),
        type=str,
    )
    parser.add_argument(
        "--log-file",
        default=os.getenv("ANF_LOG_FILE", "anf_crr_sample.log"),
        type=str,
    )
    return parser


def main(argv=None) -> int:
    # .env has to be loaded before the parser reads its defaults
    config_manager = ConfigurationManager()
    args = build_parser().parse_args(argv)

    setup_logging(args.log_file)

    overrides = vars(args)
    overrides.pop("log_file")
    try:
        config = config_manager.get_sample_config(**overrides)
    except ConfigurationError as e:
        logging.critical(f"Invalid configuration: {e}")
        return 1

    logging.info("Starting Azure NetApp Files cross-region replication sample")
    exit_code = AnfReplicationApplication(config, display=config_manager.display).run()
    logging.info(f"Sample finished with exit code {exit_code}")
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
