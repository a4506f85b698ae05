import argparse
import json
import sys
import logging
from concurrent.futures import ThreadPoolExecutor

from botocore.exceptions import ClientError, NoCredentialsError, EndpointConnectionError, NoRegionError
from pydantic import ValidationError

from .config import Config, load_config
from .session import (
    FatalConstructionError,
    SessionCreationError,
    build_client,
    create_sessions,
)
from .io_utils import write_jsonl_records, write_csv_records


# ----------------------------
# Helpers
# ----------------------------
class _JsonHandler(logging.StreamHandler):
    def emit(self, record):
        import time as _time
        msg = {
            "ts": _time.strftime("%Y-%m-%dT%H:%M:%SZ", _time.gmtime(record.created)),
            "level": record.levelname,
            "msg": record.getMessage(),
            "logger": record.name,
        }
        self.stream.write(json.dumps(msg) + "\n")
        self.flush()


def setup_logging(log_level: str, log_format: str):
    level = getattr(logging, log_level.upper(), logging.INFO)
    if log_format == "json":
        logging.basicConfig(level=level, handlers=[_JsonHandler()])
    else:
        logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def caller_identity(profile, sess, region=None):
    """Resolve who ``sess`` authenticates as. Triggers role assumption if one is configured."""
    resp = build_client(sess, "sts", region=region).get_caller_identity()
    return {
        "profile": profile,
        "account": resp.get("Account"),
        "arn": resp.get("Arn"),
        "user_id": resp.get("UserId"),
    }


def build_parser(defaults: Config) -> argparse.ArgumentParser:
    p = argparse.ArgumentParser("awssx: build AWS sessions and check who they authenticate as")

    # --- Profiles ---
    p.add_argument("-p", "--profile", action="append", dest="profiles",
                   help="Shared config profile (repeatable). Default: $AWS_PROFILES or the SDK default profile")

    # --- STS / region ---
    p.add_argument("--region", default=defaults.aws_region)
    p.add_argument("--assume-role", default=defaults.aws_assume_role)
    p.add_argument("--external-id", default=defaults.aws_assume_role_external_id)
    p.add_argument("--role-session-name", default=defaults.aws_role_session_name)
    p.add_argument("--role-duration-seconds", type=int, default=defaults.aws_role_duration_seconds)

    # --- Retries ---
    p.add_argument("--api-retries", type=int, default=defaults.aws_api_retries)
    p.add_argument("--retry-mode", choices=["legacy", "standard", "adaptive"],
                   default=defaults.aws_retry_mode)

    # --- Execution / output ---
    p.add_argument("--workers", type=int, default=8,
                   help="Profiles checked concurrently (default: 8)")
    p.add_argument("--output", help="Output path. .csv -> CSV; anything else -> JSONL; omitted -> stdout JSONL")

    # --- Logging ---
    p.add_argument("--log-level", default=defaults.log_level.upper(),
                   choices=["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"],
                   help="Log level (default: INFO)")
    p.add_argument("--log-format", default=defaults.log_format,
                   choices=["text", "json"],
                   help="Log format: text | json (default: text)")
    return p


# ----------------------------
# CLI
# ----------------------------
def main(argv=None):
    try:
        defaults = load_config()
    except ValidationError as e:
        sys.exit(f"ERROR: invalid configuration in environment: {e}")
    p = build_parser(defaults)
    args = p.parse_args(argv)

    try:
        cfg = Config(
            aws_assume_role=args.assume_role,
            aws_assume_role_external_id=args.external_id,
            aws_api_retries=args.api_retries,
            aws_profiles=args.profiles if args.profiles is not None else defaults.aws_profiles,
            aws_region=args.region,
            aws_role_session_name=args.role_session_name,
            aws_role_duration_seconds=args.role_duration_seconds,
            aws_retry_mode=args.retry_mode,
            log_level=args.log_level,
            log_format=args.log_format,
        )
    except ValidationError as e:
        p.error(str(e))

    setup_logging(cfg.log_level, cfg.log_format)
    log = logging.getLogger("awssx")

    # no session means nothing downstream can work: stop here
    try:
        sessions = create_sessions(cfg)
    except SessionCreationError as e:
        log.critical("%s", e)
        raise FatalConstructionError(str(e)) from e

    log.info("sessions ready profiles=%s retries=%d mode=%s",
             ",".join(sessions), cfg.aws_api_retries, cfg.aws_retry_mode)

    try:
        workers = max(1, min(args.workers, len(sessions)))
        with ThreadPoolExecutor(max_workers=workers) as ex:
            futures = [ex.submit(caller_identity, profile, sess, cfg.aws_region)
                       for profile, sess in sessions.items()]
            records = [fut.result() for fut in futures]

        if args.output:
            if args.output.lower().endswith(".csv"):
                count = write_csv_records(records, args.output)
            else:
                with open(args.output, "w", encoding="utf-8") as f:
                    count = write_jsonl_records(records, f)
            log.info("written path=%s records=%d", args.output, count)
        else:
            write_jsonl_records(records, sys.stdout)

        log.info("done")

    except NoCredentialsError:
        sys.exit("ERROR: no AWS credentials found. Configure env vars/profiles or use --assume-role.")
    except NoRegionError:
        sys.exit("ERROR: no AWS region configured. Set AWS_REGION, a profile region, or use --region.")
    except EndpointConnectionError as e:
        sys.exit(f"ERROR: could not reach STS ({e}). Check --region or connectivity.")
    except ClientError as e:
        code = e.response.get("Error", {}).get("Code", "ClientError")
        msg = e.response.get("Error", {}).get("Message", str(e))
        sys.exit(f"ERROR {code}: {msg}")
    except Exception as e:
        sys.exit(f"ERROR unexpected: {e}")


if __name__ == "__main__":
    main()
