import json
import logging
import sys
from argparse import ArgumentParser, Namespace
from pathlib import Path
from typing import Final

from spamsift.config import Settings, get_settings
from spamsift.errors import ErrorKind, SpamSiftError, StorageIOError
from spamsift.logs import configure_logging
from spamsift.model import plots, store, tabular
from spamsift.model.evaluation import EvaluationSummary, evaluate
from spamsift.model.training import TrainedModel, fit_model

logger = logging.getLogger("spamsift")

# Messages classified by the `run` demo.
SAMPLE_MESSAGES: Final[tuple[str, ...]] = (
    "how are you ?",
    "u have won the 1 lakh prize",
)


def train_or_load(
    train_path: Path,
    train_arff: Path,
    model_path: Path,
    alpha: float = 1.0,
    force: bool = False,
) -> TrainedModel:
    """
    Return the persisted model, training and saving a new one if needed.

    A missing model file is the normal trigger for training; a corrupt one
    is surfaced. With `force=True` the model is always retrained and the
    existing file overwritten.
    """
    if not force:
        try:
            return store.load_model(model_path)
        except SpamSiftError as exc:
            if exc.kind is not ErrorKind.NOT_FOUND:
                raise
            logger.info("no saved model, training", extra={"path": str(model_path)})

    dataset = tabular.load_cached(train_path, train_arff)
    model = fit_model(dataset, alpha=alpha)
    store.save_model(model, model_path)
    return model


def write_reports(summary: EvaluationSummary, reports_dir: Path) -> None:
    """Write `metrics.json` and `confusion_matrix.png` into `reports_dir`."""
    try:
        reports_dir.mkdir(parents=True, exist_ok=True)
        (reports_dir / "metrics.json").write_text(
            json.dumps(summary.to_dict(), indent=2), encoding="utf-8"
        )
        plots.save_confusion_matrix(summary, reports_dir / "confusion_matrix.png")
    except OSError as exc:
        raise StorageIOError(f"Could not write reports to {reports_dir}: {exc}") from exc


def _train(args: Namespace, settings: Settings) -> None:
    train_or_load(
        args.train or settings.TRAIN_DATA,
        args.train_arff or settings.TRAIN_ARFF,
        args.model or settings.MODEL_PATH,
        alpha=settings.SMOOTHING_ALPHA,
        force=args.force,
    )
    print("=== Model ready ===")
    print(store.model_fingerprint(args.model or settings.MODEL_PATH))


def _predict(args: Namespace, settings: Settings) -> None:
    model = store.load_model(args.model or settings.MODEL_PATH)
    for label, score in model.score_many(args.texts):
        print(f"{label}\t{score:.4f}")


def _evaluate(args: Namespace, settings: Settings) -> None:
    model = store.load_model(args.model or settings.MODEL_PATH)
    test_data = tabular.load_cached(
        args.test or settings.TEST_DATA,
        args.test_arff or settings.TEST_ARFF,
        model.labels,
    )
    summary = evaluate(model, test_data)
    print(summary.to_summary_string())

    if args.reports is not None:
        write_reports(summary, args.reports)


def _run(args: Namespace, settings: Settings) -> None:
    model = train_or_load(
        settings.TRAIN_DATA,
        settings.TRAIN_ARFF,
        args.model or settings.MODEL_PATH,
        alpha=settings.SMOOTHING_ALPHA,
    )

    for text in SAMPLE_MESSAGES:
        print(model.predict(text))

    test_data = tabular.load_cached(settings.TEST_DATA, settings.TEST_ARFF, model.labels)
    print(evaluate(model, test_data).to_summary_string())


def build_parser() -> ArgumentParser:
    parser = ArgumentParser("spamsift", description="SMS spam/ham classifier")
    subparsers = parser.add_subparsers(dest="command", required=True)

    train = subparsers.add_parser("train", help="load the saved model or train a new one")
    train.add_argument("--train", type=Path, help="raw training corpus")
    train.add_argument("--train-arff", type=Path, help="ARFF cache of the training corpus")
    train.add_argument("--model", type=Path, help="model file location")
    train.add_argument(
        "--force", action="store_true", help="retrain even if a model file exists"
    )
    train.set_defaults(handler=_train)

    predict = subparsers.add_parser("predict", help="classify messages")
    predict.add_argument("texts", nargs="+", help="messages to classify")
    predict.add_argument("--model", type=Path, help="model file location")
    predict.set_defaults(handler=_predict)

    evaluate_cmd = subparsers.add_parser("evaluate", help="score the model on held-out data")
    evaluate_cmd.add_argument("--test", type=Path, help="raw test corpus")
    evaluate_cmd.add_argument("--test-arff", type=Path, help="ARFF cache of the test corpus")
    evaluate_cmd.add_argument("--model", type=Path, help="model file location")
    evaluate_cmd.add_argument(
        "--reports", type=Path, help="write metrics.json and confusion_matrix.png here"
    )
    evaluate_cmd.set_defaults(handler=_evaluate)

    run_cmd = subparsers.add_parser("run", help="train-or-load, sample predictions, evaluate")
    run_cmd.add_argument("--model", type=Path, help="model file location")
    run_cmd.set_defaults(handler=_run)

    return parser


def run(argv: list[str] | None = None) -> int:
    """
    Parse arguments, execute one command and return the process exit code.

    Any `SpamSiftError` is logged and turned into exit code 1.
    """
    args = build_parser().parse_args(argv)
    settings = get_settings()
    configure_logging(json_logs=settings.LOG_JSON, level=settings.LOG_LEVEL)

    try:
        args.handler(args, settings)
    except SpamSiftError as exc:
        logger.error(str(exc), extra={"kind": exc.kind.value})
        return 1

    return 0


def main() -> None:
    """
    CLI entry point.

    Example:
        spamsift train --train dataset/train.txt --model models/sms.joblib
        spamsift predict "u have won the 1 lakh prize"
        spamsift evaluate --test dataset/test.txt --reports reports/
    """
    sys.exit(run())


if __name__ == "__main__":
    main()
