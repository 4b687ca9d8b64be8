"""
Console output of the replication sample.

The banner, the per-site summary of created resources and the coloured status
lines go to stdout through colorama; progress details go to the log instead.
"""

from typing import Dict, Optional

from colorama import Fore, Style, init as colorama_init


class DisplayManager:
    """Handles console output formatting and colors."""

    def __init__(self):
        """Initialize colorama for cross-platform color support."""
        colorama_init(autoreset=True)

    @staticmethod
    def print_header(content: str) -> None:
        """Print the sample banner underlined in cyan."""
        separator = "-" * min(len(content), 100)
        print(f"{Fore.CYAN}{content}\n{separator}{Style.RESET_ALL}")

    @staticmethod
    def print_resources(side: str, resource_ids: Dict[str, Optional[str]]) -> None:
        """Print the ids of one side's resources, flagging the ones never created."""
        print(f"{Fore.CYAN}{side} resources:{Style.RESET_ALL}")
        for label, resource_id in resource_ids.items():
            value = resource_id or f"{Style.DIM}not created"
            print(f"  {label:<10} {value}{Style.RESET_ALL}")

    @staticmethod
    def print_error(content: str) -> None:
        """Print content in red color for errors."""
        print(f"{Fore.RED}❌ {content}{Style.RESET_ALL}")

    @staticmethod
    def print_success(content: str) -> None:
        """Print content in green color for success messages."""
        print(f"{Fore.GREEN}✅ {content}{Style.RESET_ALL}")

    @staticmethod
    def print_info(content: str) -> None:
        """Print content in yellow color for informational messages."""
        print(f"{Fore.YELLOW}ℹ️  {content}{Style.RESET_ALL}")

    @staticmethod
    def print_warning(content: str) -> None:
        """Print content in magenta color for warnings."""
        print(f"{Fore.MAGENTA}⚠️  {content}{Style.RESET_ALL}")
