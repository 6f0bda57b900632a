"""Tests for branch resolution."""

from typing import Any

import pytest
from fastapi import status

from tests.conftest import BRANCH_CODE, BRANCH_NAME, BRANCH_SLUG

pytestmark = pytest.mark.asyncio


@pytest.mark.parametrize("param", ["moa", "MOA", "yl-moa", BRANCH_CODE, "unknown-place"])
async def test_resolve(client: Any, branch: Any, param: str) -> None:
    r = await client.get(f"/api/v1/branches/resolve/{param}")
    assert r.status_code == status.HTTP_200_OK
    assert r.json() == {"code": BRANCH_CODE, "name": BRANCH_NAME, "slug": BRANCH_SLUG}


async def test_resolve_without_default_branch(client: Any) -> None:
    r = await client.get("/api/v1/branches/resolve/unknown-place")
    assert r.status_code == status.HTTP_404_NOT_FOUND
    assert r.json()["ok"] is False
