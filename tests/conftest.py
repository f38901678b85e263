"""Shared pytest fixtures for sentineltrust tests."""
import json

import boto3
import pytest

# moto is imported lazily inside fixtures so the import error surface is clear.

ACCOUNT = "123456789012"
ROOT_ARN = f"arn:aws:iam::{ACCOUNT}:root"


@pytest.fixture(autouse=True)
def aws_credentials(monkeypatch):
    """Prevent accidental real AWS calls by setting fake credentials."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")


@pytest.fixture
def moto_iam():
    """Yield a real boto3 IAM client inside a moto mock_aws context."""
    from moto import mock_aws

    with mock_aws():
        yield boto3.client("iam", region_name="us-east-1")


@pytest.fixture
def sentinel_role_arn(moto_iam):
    """A role whose trust policy accepts any Sentinel-issued session."""
    trust = {
        "Version": "2012-10-17",
        "Statement": [
            {
                "Sid": "AllowSentinelAccess",
                "Effect": "Allow",
                "Principal": {"AWS": ROOT_ARN},
                "Action": "sts:AssumeRole",
                "Condition": {"StringLike": {"sts:SourceIdentity": "sentinel:*"}},
            }
        ],
    }
    moto_iam.create_role(RoleName="sentinel-admin", AssumeRolePolicyDocument=json.dumps(trust))
    return moto_iam.get_role(RoleName="sentinel-admin")["Role"]["Arn"]


@pytest.fixture
def legacy_role_arn(moto_iam):
    """A role with no SourceIdentity condition at all."""
    trust = {
        "Version": "2012-10-17",
        "Statement": [
            {
                "Effect": "Allow",
                "Principal": {"Service": "ec2.amazonaws.com"},
                "Action": "sts:AssumeRole",
            }
        ],
    }
    moto_iam.create_role(RoleName="sentinel-legacy", AssumeRolePolicyDocument=json.dumps(trust))
    return moto_iam.get_role(RoleName="sentinel-legacy")["Role"]["Arn"]
