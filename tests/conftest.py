import pytest

SHARED_CONFIG = """\
[default]
region = us-east-1

[profile prod]
region = us-west-2

[profile staging]
region = eu-west-1
"""

SHARED_CREDENTIALS = """\
[default]
aws_access_key_id = AKIDDEFAULT
aws_secret_access_key = default-secret

[prod]
aws_access_key_id = AKIDPROD
aws_secret_access_key = prod-secret

[staging]
aws_access_key_id = AKIDSTAGING
aws_secret_access_key = staging-secret
"""

AWS_ENV_VARS = (
    "AWS_PROFILE",
    "AWS_DEFAULT_PROFILE",
    "AWS_REGION",
    "AWS_DEFAULT_REGION",
    "AWS_ACCESS_KEY_ID",
    "AWS_SECRET_ACCESS_KEY",
    "AWS_SESSION_TOKEN",
    "AWS_ROLE_ARN",
    "AWS_WEB_IDENTITY_TOKEN_FILE",
    "AWS_CONTAINER_CREDENTIALS_RELATIVE_URI",
    "AWS_CONTAINER_CREDENTIALS_FULL_URI",
    "AWS_ASSUME_ROLE",
    "AWS_ASSUME_ROLE_EXTERNAL_ID",
    "AWS_API_RETRIES",
    "AWS_PROFILES",
    "AWS_ROLE_SESSION_NAME",
    "AWS_ROLE_DURATION_SECONDS",
    "AWS_RETRY_MODE",
    "AWS_MAX_ATTEMPTS",
    "LOG_LEVEL",
    "LOG_FORMAT",
)


@pytest.fixture(autouse=True)
def aws_home(tmp_path, monkeypatch):
    """Point botocore at throwaway shared config files and clear ambient AWS settings."""
    for var in AWS_ENV_VARS:
        monkeypatch.delenv(var, raising=False)

    config_file = tmp_path / "config"
    config_file.write_text(SHARED_CONFIG)
    credentials_file = tmp_path / "credentials"
    credentials_file.write_text(SHARED_CREDENTIALS)

    monkeypatch.setenv("AWS_CONFIG_FILE", str(config_file))
    monkeypatch.setenv("AWS_SHARED_CREDENTIALS_FILE", str(credentials_file))
    monkeypatch.setenv("AWS_EC2_METADATA_DISABLED", "true")
    return tmp_path


@pytest.fixture
def broken_config(aws_home):
    (aws_home / "config").write_text("this is not an ini file\n")
    return aws_home / "config"
