"""
Crop Yield Dashboard - CLI

Usage:
    python -m yield_dashboard.cli <command> [options]

Commands:
    serve       Start the FastAPI server
    predict     Predict yield for one set of conditions
    dataset     Show dataset summary and filtered records
"""
import argparse
import json
import logging
import sys
from typing import List, Optional

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S"
)
log = logging.getLogger("yield_dashboard")

# ═══════════════════════════════════════════════════════════════════════════════
# COMMAND: serve
# ═══════════════════════════════════════════════════════════════════════════════

def cmd_serve(args) -> int:
    """Start FastAPI server."""
    from .api import run_server

    print(f"🚀 Starting API server on {args.host}:{args.port}")
    print(f"   Docs: http://{args.host}:{args.port}/docs")
    run_server(host=args.host, port=args.port, reload=args.reload)
    return 0


# ═══════════════════════════════════════════════════════════════════════════════
# COMMAND: predict
# ═══════════════════════════════════════════════════════════════════════════════

def cmd_predict(args) -> int:
    """Predict yield from the command line."""
    from .errors import YieldDashboardError
    from .estimator import YieldEstimator
    from .models import FeatureVector
    from .store import InMemoryRowStore, build_row_stores, load_rows_csv

    if args.rows:
        reference, predictions = InMemoryRowStore(load_rows_csv(args.rows)), InMemoryRowStore()
    else:
        reference, predictions = build_row_stores()

    features = FeatureVector(
        crop=args.crop,
        temperature=args.temp,
        rainfall=args.rainfall,
        humidity=args.humidity,
        soil_ph=args.ph,
        nitrogen=args.nitrogen,
        phosphorus=args.phosphorus,
        potassium=args.potassium,
    )

    try:
        result = YieldEstimator(reference, predictions).predict(features)
    except YieldDashboardError as e:
        log.error(f"Prediction failed: {e}")
        print(json.dumps({"error": str(e)}))
        return 1

    response = result.to_response(features.crop)
    if args.json:
        print(json.dumps(response, indent=2))
        return 0

    print(f"\n🌾 Yield prediction for {features.crop}")
    print(f"   Conditions: temp={args.temp}°C, rain={args.rainfall}mm, humidity={args.humidity}%, pH={args.ph}")
    print("-" * 50)
    print(f"   Predicted yield: {response['predicted_yield']}")
    print(f"   Confidence:      {response['confidence']}")
    print(f"   Model:           {response['best_model']} ({result.neighbors} neighbours)")
    return 0


# ═══════════════════════════════════════════════════════════════════════════════
# COMMAND: dataset
# ═══════════════════════════════════════════════════════════════════════════════

def cmd_dataset(args) -> int:
    """Show dataset statistics."""
    from .config import DATA_DIR
    from .dataset import CropDatasetRepository
    from .errors import DatasetError

    repo = CropDatasetRepository(args.data_dir or DATA_DIR)
    try:
        summary = repo.summary()
        df = repo.filtered(crop=args.crop, state=args.state, year=args.year)
    except DatasetError as e:
        log.error(str(e))
        return 1

    print(f"\n📊 Dataset ({summary['total_records']} records, "
          f"{summary['crops_count']} crops, {summary['states_count']} states)")
    if summary["avg_yield"] is not None:
        print(f"   Yield: mean={summary['avg_yield']:.2f}, "
              f"range=[{summary['yield_range']['min']:.2f}, {summary['yield_range']['max']:.2f}]")

    print(f"\n   Matching records: {len(df)}")
    if not df.empty:
        print(df.head(args.rows).to_string(index=False))
    return 0


# ═══════════════════════════════════════════════════════════════════════════════
# MAIN
# ═══════════════════════════════════════════════════════════════════════════════

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="yield_dashboard",
        description="🌾 Crop Yield Dashboard CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m yield_dashboard.cli serve --port 8000
  python -m yield_dashboard.cli predict -c Rice -t 28 -r 1200
  python -m yield_dashboard.cli predict -c Wheat --rows data/crops_dataset.csv --json
  python -m yield_dashboard.cli dataset -c Rice -n 5
        """
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # serve
    p_serve = subparsers.add_parser("serve", help="Start API server")
    p_serve.add_argument("-H", "--host", default="0.0.0.0", help="Host")
    p_serve.add_argument("-p", "--port", type=int, default=8000, help="Port")
    p_serve.add_argument("-r", "--reload", action="store_true", help="Auto-reload")
    p_serve.set_defaults(func=cmd_serve)

    # predict
    p_pred = subparsers.add_parser("predict", help="Predict crop yield")
    p_pred.add_argument("-c", "--crop", required=True, help="Crop name")
    p_pred.add_argument("-t", "--temp", type=float, default=25, help="Temperature °C")
    p_pred.add_argument("-r", "--rainfall", type=float, default=800, help="Rainfall mm")
    p_pred.add_argument("--humidity", type=float, default=65, help="Humidity %%")
    p_pred.add_argument("--ph", type=float, default=6.5, help="Soil pH")
    p_pred.add_argument("-N", "--nitrogen", type=float, default=100, help="Nitrogen kg/ha")
    p_pred.add_argument("-P", "--phosphorus", type=float, default=50, help="Phosphorus kg/ha")
    p_pred.add_argument("-K", "--potassium", type=float, default=150, help="Potassium kg/ha")
    p_pred.add_argument("--rows", help="Reference rows CSV (overrides the configured store)")
    p_pred.add_argument("--json", action="store_true", help="Print the JSON response")
    p_pred.set_defaults(func=cmd_predict)

    # dataset
    p_data = subparsers.add_parser("dataset", help="Show dataset statistics")
    p_data.add_argument("-d", "--data-dir", help="Directory with the dataset JSON files")
    p_data.add_argument("-c", "--crop", help="Crop filter")
    p_data.add_argument("-s", "--state", help="State filter")
    p_data.add_argument("-y", "--year", type=int, help="Year filter")
    p_data.add_argument("-n", "--rows", type=int, default=10, help="Rows to display")
    p_data.set_defaults(func=cmd_dataset)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
