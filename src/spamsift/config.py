import functools
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Central configuration for SpamSift.

    Values are populated from environment variables with the prefix
    `SPAMSIFT_`, or from a `.env` file when present, so the CLI and the
    API read the same locations.

    Examples
    --------
    - `SPAMSIFT_MODEL_PATH=models/sms.joblib`
    - `SPAMSIFT_LOG_LEVEL=DEBUG`
    - `SPAMSIFT_LOG_JSON=false`

    Notes
    -----
    - Use `get_settings()` rather than instantiating this class directly.
    - CLI flags override these values for a single run.
    """

    model_config = SettingsConfigDict(env_file=".env", env_prefix="SPAMSIFT_")

    # Raw training corpus ("<label> <text>" per line) and its ARFF cache
    TRAIN_DATA: Path = Path("dataset/train.txt")
    TRAIN_ARFF: Path = Path("dataset/train.arff")

    # Raw held-out corpus and its ARFF cache
    TEST_DATA: Path = Path("dataset/test.txt")
    TEST_ARFF: Path = Path("dataset/test.arff")

    # Persisted model blob
    MODEL_PATH: Path = Path("models/sms.joblib")

    # Additive (Laplace) smoothing for the Naive Bayes estimates
    SMOOTHING_ALPHA: float = 1.0

    # Max number of messages per /predict call
    MAX_TEXTS_PER_REQUEST: int = 64

    # Max length of each text sample (chars)
    MAX_TEXT_LEN: int = 2000

    # Max request body size accepted by the API (bytes)
    MAX_PAYLOAD_BYTES: int = 1_000_000

    # Minimum log level (DEBUG, INFO, WARNING...)
    LOG_LEVEL: str = "INFO"

    # Emit logs in structured JSON format
    LOG_JSON: bool = False


@functools.cache
def get_settings() -> Settings:
    """
    Retrieve a cached global instance of the Settings.

    The instance is memoized using `functools.cache`, so every caller shares
    the same settings unless explicitly overridden (e.g. in tests).
    """
    return Settings()
