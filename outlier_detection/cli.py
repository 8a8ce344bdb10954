"""Command line entry point: synthesize data, fit a detector, detect and score."""

from __future__ import annotations

import argparse
import logging
import sys

import numpy as np

from .config import DetectorConfig, load_config
from .data import load_csv, save_csv, synthesize_clusters
from .detector import Detector, Method
from .errors import OutlierDetectionError
from .logging_config import setup_logging
from .persistence import load_detector, save_detector

logger = logging.getLogger(__name__)


def _cmd_synthesize(args: argparse.Namespace) -> int:
    rng = np.random.RandomState(args.seed)
    Xs, _ = synthesize_clusters(
        rng,
        n_inliers=args.inliers,
        n_outliers=args.outliers,
        n_features=args.features,
        spread=args.spread,
        outlier_center=args.outlier_center,
    )
    save_csv(args.out, Xs)
    logger.info("Wrote %d rows x %d features to %s", Xs.shape[0], Xs.shape[1], args.out)
    return 0


def _cmd_fit(args: argparse.Namespace) -> int:
    cfg = load_config(args.config) if args.config else DetectorConfig()
    cfg = cfg.merged({
        "method": args.method,
        "contamination": args.contamination,
        "n_estimators": args.n_estimators,
        "sample_size": args.sample_size,
        "n_jobs": args.n_jobs,
        "random_state": args.seed,
    })

    Xs = load_csv(args.data)
    detector = Detector.from_config(cfg).fit(Xs)
    save_detector(detector, args.model)
    print(f"[fit] rows={Xs.shape[0]:,} features={Xs.shape[1]} method={detector.method.value} "
          f"threshold={detector.threshold:.6g} saved={args.model}")
    return 0


def _cmd_detect(args: argparse.Namespace) -> int:
    detector = load_detector(args.model)
    Xs = load_csv(args.data)
    labels = detector.detect(Xs)
    for label in labels:
        print(int(label))

    if args.plot:
        import matplotlib

        matplotlib.use("Agg")
        import matplotlib.pyplot as plt

        from .visualization import plot_detections

        ax = plot_detections(Xs, labels, title=f"{detector.method.value} anomalies")
        ax.figure.savefig(args.plot, dpi=120, bbox_inches="tight")
        plt.close(ax.figure)
        logger.info("Saved plot to %s", args.plot)

    logger.info("%d of %d rows flagged as anomalies", int(np.sum(labels == -1)), labels.shape[0])
    return 0


def _cmd_score(args: argparse.Namespace) -> int:
    detector = load_detector(args.model)
    for score in detector.anomaly_score(load_csv(args.data)):
        print(f"{score:.10g}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="outlier-detection", description=__doc__)
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    parser.add_argument("--log-json", action="store_true", help="JSON log lines")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("synthesize", help="write a synthetic cluster with far outliers")
    p.add_argument("--out", required=True)
    p.add_argument("--inliers", type=int, default=100)
    p.add_argument("--outliers", type=int, default=10)
    p.add_argument("--features", type=int, default=2)
    p.add_argument("--spread", type=float, default=1.0)
    p.add_argument("--outlier-center", type=float, default=50.0)
    p.add_argument("--seed", type=int, default=None)
    p.set_defaults(func=_cmd_synthesize)

    p = sub.add_parser("fit", help="fit a detector on a CSV file and save it as JSON")
    p.add_argument("--data", required=True)
    p.add_argument("--model", required=True)
    p.add_argument("--config", default=None, help="YAML detector config")
    p.add_argument("--method", choices=[m.value for m in Method], default=None)
    p.add_argument("--contamination", type=float, default=None)
    p.add_argument("--n-estimators", type=int, default=None)
    p.add_argument("--sample-size", type=int, default=None)
    p.add_argument("--n-jobs", type=int, default=None)
    p.add_argument("--seed", type=int, default=None)
    p.set_defaults(func=_cmd_fit)

    p = sub.add_parser("detect", help="print +1/-1 for every row")
    p.add_argument("--data", required=True)
    p.add_argument("--model", required=True)
    p.add_argument("--plot", default=None, help="save a 2D scatter plot to this path")
    p.set_defaults(func=_cmd_detect)

    p = sub.add_parser("score", help="print the raw anomaly score of every row")
    p.add_argument("--data", required=True)
    p.add_argument("--model", required=True)
    p.set_defaults(func=_cmd_score)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.INFO, json_format=args.log_json)

    try:
        return args.func(args)
    except (OutlierDetectionError, OSError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
