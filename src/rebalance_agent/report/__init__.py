from .formatter import build_balance_table, print_balance_report, print_cycle_result

__all__ = ["build_balance_table", "print_balance_report", "print_cycle_result"]
