import re


AWS_ACCOUNT_ID_PATTERN = re.compile(r"^\d{12,}$")

AWS_ARN_PATTERN = re.compile(
    r"^arn:(?P<partition>[\w-]+):(?P<service>[\w-]+):(?P<region>[\w-]*):(?P<account_id>[\w-]*):(?P<resource>\S+)$"
)

AWS_ACCOUNT_ROOT_ARN_TEMPLATE = "arn:{}:iam::{}:root"


def parse_arn(arn):
    match = AWS_ARN_PATTERN.match(arn) if isinstance(arn, str) else None
    if not match:
        raise ValueError("Invalid ARN: {}".format(arn))
    return match.groupdict()


def get_namespace(arn):
    account_id = parse_arn(arn)["account_id"]
    if not AWS_ACCOUNT_ID_PATTERN.match(account_id):
        raise ValueError("ARN does not contain an account ID: {}".format(arn))
    return account_id


def get_account_root_arn(namespace, partition="aws"):
    return AWS_ACCOUNT_ROOT_ARN_TEMPLATE.format(partition, namespace)
