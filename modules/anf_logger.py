"""Logging setup for the replication sample: stdout plus a log file."""

import logging
import os
import sys

# SDK loggers that report every HTTP request and LRO poll at INFO
AZURE_LOGGERS = (
    "azure",
    "azure.core.pipeline.policies.http_logging_policy",
    "azure.identity",
    "azure.mgmt.netapp",
    "azure.mgmt.resource",
)


def setup_logging(log_file: str = "anf_crr_sample.log") -> None:
    """
    Configure the root logger from ANF_LOG_LEVEL and quiet the Azure SDK loggers.

    The SDK loggers default to WARNING so the long replication waits do not
    flood the log with request traces; set AZURE_LOG_LEVEL=DEBUG to see them.
    """
    log_level_str = os.getenv("ANF_LOG_LEVEL", "INFO").upper()
    log_level = getattr(logging, log_level_str, logging.INFO)
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout),
            logging.FileHandler(log_file, mode="w"),
        ],
    )
    logging.info(f"Logging to {log_file} at {log_level_str}")

    azure_log_level_str = os.getenv("AZURE_LOG_LEVEL", "WARNING").upper()
    azure_log_level = getattr(logging, azure_log_level_str, logging.WARNING)
    for logger_name in AZURE_LOGGERS:
        logging.getLogger(logger_name).setLevel(azure_log_level)
    logging.debug(f"Azure SDK loggers set to {azure_log_level_str}")
