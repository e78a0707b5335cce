"""Tests for existing exemption lookups."""

import pytest

from exemption_manager.core.exceptions import ProviderError
from exemption_manager.schemas import Scope
from exemption_manager.services.exemption_repository import ExemptionRepository
from tests.fixtures import MCSB_ASSIGNMENT_ID, access_denied, make_exemption, make_resource


class TestExemptionRepository:
    """Test suite for ExemptionRepository."""

    def test_fetch_returns_resource_exemptions(self, policy_store, session):
        """Test exemptions recorded on a resource are returned."""
        resource = make_resource(1)
        existing = make_exemption(resource, MCSB_ASSIGNMENT_ID)
        policy_store.add_resource_exemption(existing)

        assert ExemptionRepository(policy_store, session).fetch(resource.resource_id) == [existing]

    def test_fetch_uses_resource_subscription(self, policy_store, session):
        """Test the lookup runs in the resource's subscription."""
        ExemptionRepository(policy_store, session).fetch(make_resource(1, "sub-7").resource_id)

        assert session.switched == ["sub-7"]

    def test_fetch_propagates_errors(self, policy_store, session):
        """Test the strict lookup raises on provider failure."""
        resource = make_resource(1)
        policy_store.resource_errors[resource.resource_id.lower()] = access_denied("sub-1")

        with pytest.raises(ProviderError):
            ExemptionRepository(policy_store, session).fetch(resource.resource_id)

    def test_existing_for_failure_means_none(self, policy_store, session, caplog):
        """Test a failed lookup is reported as no exemptions."""
        resource = make_resource(1)
        policy_store.resource_errors[resource.resource_id.lower()] = access_denied("sub-1")

        existing = ExemptionRepository(policy_store, session).existing_for(resource.resource_id)

        assert existing == []
        assert "assuming none" in caplog.text

    def test_at_scope_lists_scope_exemptions(self, policy_store, session):
        """Test scope-level listing queries the scope itself."""
        scope = Scope.management_group("contoso")
        exemption = make_exemption(make_resource(1), MCSB_ASSIGNMENT_ID)
        policy_store.scope_exemptions[scope.resource_id.lower()] = [exemption]

        assert ExemptionRepository(policy_store, session).at_scope(scope) == [exemption]
        assert policy_store.calls == ["list_exemptions:contoso"]
        assert session.switched == []
