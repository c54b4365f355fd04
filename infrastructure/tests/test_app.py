"""
Unit tests for the CDK app wiring and its settings lookup.
"""

import os
from unittest.mock import patch

import aws_cdk as cdk
import pytest

from infrastructure.atlas_infra import atlas_setting, build_app, parse_flag

ORG_ID = "5f0000000000000000000001"


def _app(**context):
    return cdk.App(context={"aws:cdk:bundling-stacks": [], **context})


class TestAtlasSetting:
    @patch.dict(os.environ, {"MONGODB_ATLAS_PROFILE": "from-env"})
    def test_context_wins_over_environment(self):
        app = _app(**{"mongodb-atlas:profile": "from-context"})
        assert atlas_setting(app, "mongodb-atlas:profile", "MONGODB_ATLAS_PROFILE") == "from-context"

    @patch.dict(os.environ, {"MONGODB_ATLAS_PROFILE": "from-env"})
    def test_environment_fallback(self):
        app = _app(**{"mongodb-atlas:profile": ""})
        assert atlas_setting(app, "mongodb-atlas:profile", "MONGODB_ATLAS_PROFILE") == "from-env"

    @patch.dict(os.environ, {"MONGODB_ATLAS_PROFILE": ""})
    def test_default_when_unset(self):
        app = _app()
        assert (
            atlas_setting(app, "mongodb-atlas:profile", "MONGODB_ATLAS_PROFILE", "default")
            == "default"
        )


class TestParseFlag:
    @pytest.mark.parametrize("value", [True, "true", "TRUE", "1", "yes", " on "])
    def test_truthy(self, value):
        assert parse_flag(value) is True

    @pytest.mark.parametrize("value", [False, None, "false", "0", "", "no"])
    def test_falsy(self, value):
        assert parse_flag(value) is False


class TestBuildApp:
    @patch.dict(os.environ, {"MONGODB_ATLAS_ORG_ID": ""})
    def test_missing_org_id(self):
        with pytest.raises(ValueError, match="Atlas organization ID is required"):
            build_app(_app())

    @patch.dict(os.environ, {"MONGODB_ATLAS_ORG_ID": ""})
    def test_creates_stacks(self):
        app = build_app(_app(**{"mongodb-atlas:org-id": ORG_ID}))
        stack_ids = {child.node.id for child in app.node.children if isinstance(child, cdk.Stack)}
        assert stack_ids == {"AtlasVPCStack", "AtlasClusterStack", "AtlasConnectivityStack"}

    @patch.dict(
        os.environ,
        {"MONGODB_ATLAS_ORG_ID": ORG_ID, "MONGODB_ATLAS_INSTANCE_SIZE": "M2"},
    )
    def test_shared_tier_aborts_synthesis(self):
        with pytest.raises(ValueError, match="Instance size M2 is not supported"):
            build_app(_app())
