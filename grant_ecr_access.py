#!/usr/bin/env python3

import argparse
import boto3
import botocore.config
import botocore.exceptions
import re
import sys

from modules.arn_parser import get_account_root_arn, get_namespace
from modules.repository_policy_updater import RepositoryPolicyUpdater, get_default_max_workers
from modules.result_collector import ResultCollector


AWS_DEFAULT_REGION = "eu-west-1"

BOTO_CONFIG = botocore.config.Config(
    connect_timeout=5,
    read_timeout=5,
    retries={"total_max_attempts": 5, "mode": "standard"},
)

PATTERN_AWS_REGION_NAME = re.compile(r"^([a-z]+-){2,}\d+$")

USAGE_EXAMPLES = """
examples:
  add user:
    grant-ecr -u arn:aws:iam::9999999999999:role/admin-role -d 'Sandbox account'
  remove user:
    grant-ecr -u arn:aws:iam::9999999999999:role/admin-role --remove
"""

CONFIRMATION_MESSAGE = """
    Press ENTER to {} the user:
    {} (more specifically: {})
    {} ALL ECR repositories of the currently authenticated user:
    {}
    in the region: {}
"""


def parse_user_arn(val):
    try:
        get_namespace(val)
    except ValueError as ex:
        raise argparse.ArgumentTypeError(str(ex))
    return val


def parse_region(val):
    if not PATTERN_AWS_REGION_NAME.match(val):
        raise argparse.ArgumentTypeError("Invalid region name format: {}".format(val))
    return val


def parse_max_workers(val):
    try:
        max_workers = int(val)
    except ValueError:
        raise argparse.ArgumentTypeError("Invalid number of workers: {}".format(val))
    if max_workers < 1:
        raise argparse.ArgumentTypeError("Number of workers must be at least 1")
    return max_workers


def build_argument_parser():
    parser = argparse.ArgumentParser(
        prog="grant-ecr",
        description="Grant or revoke cross-account pull access to all ECR repositories of the current account",
        epilog=USAGE_EXAMPLES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-u",
        "--user",
        type=parse_user_arn,
        help="ARN of the user or role whose account is granted or revoked pull access",
    )
    parser.add_argument(
        "-d",
        "--description",
        help="policy description, required unless --remove is set",
    )
    parser.add_argument(
        "--remove",
        action="store_true",
        help="revoke pull access instead of granting it",
    )
    parser.add_argument(
        "-r",
        "--region",
        default=AWS_DEFAULT_REGION,
        type=parse_region,
        help="region of the ECR registry (default: {})".format(AWS_DEFAULT_REGION),
    )
    parser.add_argument(
        "--profile",
        help="named AWS profile to use",
    )
    parser.add_argument(
        "--max-workers",
        default=get_default_max_workers(),
        type=parse_max_workers,
        help="maximum number of repositories processed in parallel",
    )
    return parser


def confirm_on_terminal(message):
    try:
        input(message)
    except EOFError:
        return False
    return True


def get_confirmation_message(args, namespace, caller_arn):
    return CONFIRMATION_MESSAGE.format(
        "remove" if args.remove else "add",
        args.user,
        get_account_root_arn(namespace),
        "from" if args.remove else "to",
        caller_arn,
        args.region,
    )


def main(argv=None, confirm_function=confirm_on_terminal):
    parser = build_argument_parser()
    args = parser.parse_args(argv)

    # Validate flags that depend on each other
    if not args.user:
        print("User not provided")
        parser.print_help()
        return
    if not args.remove and not args.description:
        print("Description not provided")
        parser.print_help()
        return
    namespace = get_namespace(args.user)

    # Validate provided credentials and get account details
    try:
        boto_session = boto3.Session(profile_name=args.profile, region_name=args.region)
    except botocore.exceptions.ProfileNotFound as ex:
        print("Error: {}".format(ex))
        sys.exit(1)
    sts_client = boto_session.client("sts", config=BOTO_CONFIG)
    try:
        get_caller_identity_response = sts_client.get_caller_identity()
    except (botocore.exceptions.ClientError, botocore.exceptions.BotoCoreError):
        print("No or invalid AWS credentials configured")
        sys.exit(1)
    account_id = get_caller_identity_response["Account"]
    principal = get_caller_identity_response["Arn"]

    # Nothing is changed before the operator acknowledged the action
    if not confirm_function(get_confirmation_message(args, namespace, principal)):
        print("Aborted")
        sys.exit(1)

    result_collector = ResultCollector(account_id, principal, namespace, args.remove)
    repository_policy_updater = RepositoryPolicyUpdater(
        boto_session, BOTO_CONFIG, args.region, result_collector, args.max_workers
    )
    try:
        repository_policy_updater.update_repositories(namespace, args.remove)
    except botocore.exceptions.ClientError as ex:
        print(
            "Cannot list ECR repositories: {} ({})".format(
                ex.response["Error"]["Code"], ex.response["Error"]["Message"].strip()
            )
        )
        sys.exit(1)
    except botocore.exceptions.BotoCoreError as ex:
        print("Cannot list ECR repositories: {}".format(ex))
        sys.exit(1)

    result_collector.print_summary()
    if result_collector.has_failures():
        sys.exit(1)
    print("Done.")


if __name__ == "__main__":
    main()
