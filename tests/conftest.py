"""Shared fixtures: a local-backend application per test."""

from dataclasses import replace
from datetime import timedelta

import pytest

from recall.app import build_local_collaborators, create_app
from recall.models.core import Memory, MemoryType
from recall.utils.config import load_config
from recall.utils.timestamp_utils import utc_now

PREMIUM_EMAIL = 'pro@example.com'


@pytest.fixture
def config(tmp_path):
    cfg = load_config()
    return replace(cfg,
                   backend=replace(cfg.backend, mode='local'),
                   session=replace(cfg.session, min_password_length=6),
                   dashboard=replace(cfg.dashboard, export_dir=str(tmp_path)))


@pytest.fixture
def collaborators(config):
    return build_local_collaborators(config, premium_emails=[PREMIUM_EMAIL])


@pytest.fixture
def app(config, collaborators):
    return create_app(config, collaborators)


@pytest.fixture
def make_memory():
    counter = {'n': 0}

    def factory(title='A note', content='', tags=None, type=MemoryType.NOTE, source='manual', metadata=None, days_ago=0):
        counter['n'] += 1
        created = utc_now() - timedelta(days=days_ago)
        return Memory(id=f'm{counter["n"]}',
                      type=type,
                      title=title,
                      content=content,
                      source=source,
                      tags=tags or [],
                      metadata=metadata or {},
                      created_at=created,
                      updated_at=created)

    return factory
