import sqlite3

import pytest
from fastapi.testclient import TestClient

from app import db as appdb
from core.mps_repository import MpsRepository


@pytest.fixture
def db_setup(tmp_path, monkeypatch):
    """
    テスト関数ごとにDBをセットアップするfixture。
    1. 一時的なDBファイルを作成する。
    2. 環境変数 MPS_DB を設定し、アプリがテストDBを参照するようにする。
    3. Alembicを使ってDBマイグレーションを実行する。
    """
    db_path = tmp_path / "test.db"
    monkeypatch.setenv("MPS_DB", str(db_path))
    appdb.set_db_path(str(db_path))
    appdb.init_db(force=True)

    def get_test_conn():
        conn = sqlite3.connect(str(db_path))
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    monkeypatch.setattr(appdb, "_conn", get_test_conn)

    yield db_path

    appdb.set_db_path(None)


@pytest.fixture
def repo(db_setup):
    return MpsRepository(appdb._conn)


@pytest.fixture
def client(db_setup):
    from app.api import app

    return TestClient(app)


@pytest.fixture
def seed_sample_data(repo):
    """サンプル品目・BOM・期首残高・製造指示・発注を投入する。"""
    from scripts.seed_sample import seed

    seed(repo)
    return {p["code"]: p["id"] for p in repo.list_products()}
