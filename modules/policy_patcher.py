import copy
import json

from modules.arn_parser import get_account_root_arn


DEFAULT_POLICY_VERSION = "2008-10-17"

STATEMENT_SID = "Sandbox account"

PULL_ACTIONS = [
    "ecr:GetDownloadUrlForLayer",
    "ecr:BatchGetImage",
    "ecr:BatchCheckLayerAvailability",
]


def get_default_policy_document():
    return {"Version": DEFAULT_POLICY_VERSION, "Statement": []}


def generate_statement(namespace):
    return {
        "Sid": STATEMENT_SID,
        "Effect": "Allow",
        "Principal": {"AWS": get_account_root_arn(namespace)},
        "Action": list(PULL_ACTIONS),
    }


def get_statements(policy_document):
    # Make sure the "Statement" block is represented as a list, even if it only consists of a single item
    statements = policy_document.get("Statement")
    if statements is None:
        return []
    if isinstance(statements, list):
        return statements
    return [statements]


def statement_trusts_namespace(statement, namespace):
    if not isinstance(statement, dict) or not isinstance(statement.get("Principal"), dict):
        return False
    return statement["Principal"].get("AWS") == get_account_root_arn(namespace)


def patch_policy_document(policy_document, namespace, remove):
    """
    Return a copy of the policy document in which the namespace is granted pull access exactly once, or not at all
    if remove is set. Statements of other principals are kept in their original order.
    """
    if policy_document is None:
        policy_document = get_default_policy_document()
    patched_document = copy.deepcopy(policy_document)
    statements = [
        statement
        for statement in get_statements(patched_document)
        if not statement_trusts_namespace(statement, namespace)
    ]
    if not remove:
        statements.append(generate_statement(namespace))
    patched_document["Statement"] = statements
    return patched_document


def patch_policy(policy_text, namespace, remove):
    policy_document = json.loads(policy_text) if policy_text else None
    return json.dumps(patch_policy_document(policy_document, namespace, remove), separators=(",", ":"))


def count_statements(policy_text):
    return len(get_statements(json.loads(policy_text)))
