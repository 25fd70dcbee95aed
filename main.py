"""
Entry point for the mortgage payoff strategy simulator.

Usage:
    python main.py                  # launches the web app at localhost:5000
    python main.py --cli            # runs the terminal interface
    python main.py --cli --debug    # ...and prints the LOC month-by-month trace
"""

import argparse


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Mortgage Payoff Strategies: Extra Principal vs LOC vs Invest",
    )
    parser.add_argument(
        "--cli",
        action="store_true",
        help="Run in terminal mode instead of launching the web app",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="CLI: print the LOC strategy trace table",
    )
    parser.add_argument(
        "--trace-period",
        choices=["first", "last"],
        default="first",
        help="CLI: which 12 months of the LOC trace to print",
    )
    parser.add_argument(
        "--no-pdf",
        action="store_true",
        help="CLI: skip writing the PDF report",
    )
    args = parser.parse_args()

    if args.cli:
        import config as cfg
        from cli import run_cli
        run_cli(debug=args.debug, trace_period=args.trace_period,
                pdf_path=None if args.no_pdf else cfg.PDF_FILENAME)
    else:
        from app import run_web
        run_web()


if __name__ == "__main__":
    main()
