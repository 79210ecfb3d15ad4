import pytest

from modules.arn_parser import get_account_root_arn, get_namespace, parse_arn


def test_parse_role_arn():
    assert parse_arn("arn:aws:iam::123456789012:role/admin-role") == {
        "partition": "aws",
        "service": "iam",
        "region": "",
        "account_id": "123456789012",
        "resource": "role/admin-role",
    }


def test_parse_arn_with_region_and_colons_in_resource():
    parsed = parse_arn("arn:aws-cn:ecr:cn-north-1:123456789012:repository/app:latest")
    assert parsed["partition"] == "aws-cn"
    assert parsed["region"] == "cn-north-1"
    assert parsed["resource"] == "repository/app:latest"


def test_get_namespace_from_example_role():
    assert get_namespace("arn:aws:iam::9999999999999:role/admin-role") == "9999999999999"


def test_get_namespace_from_user_arn():
    assert get_namespace("arn:aws:iam::123456789012:user/jane") == "123456789012"


@pytest.mark.parametrize(
    "arn",
    [
        "",
        "not-an-arn",
        "arn:aws:iam::123456789012",
        "arn:aws:iam::123456789012:",
        "aws:iam::123456789012:role/admin",
        None,
    ],
)
def test_parse_arn_rejects_malformed_input(arn):
    with pytest.raises(ValueError):
        parse_arn(arn)


@pytest.mark.parametrize(
    "arn",
    [
        "arn:aws:s3:::my-bucket",
        "arn:aws:iam::12345:role/admin-role",
        "arn:aws:iam::aws:policy/ReadOnlyAccess",
    ],
)
def test_get_namespace_requires_account_id(arn):
    with pytest.raises(ValueError):
        get_namespace(arn)


def test_get_account_root_arn():
    assert get_account_root_arn("9999999999999") == "arn:aws:iam::9999999999999:root"
