"""
Shared fixtures: sample sources and an isolated configuration directory.
"""
import textwrap

import pytest

from spanseek.core import config as config_module


def _source(text: str) -> str:
    return textwrap.dedent(text).lstrip("\n")


# createSession spans lines 10-20
SESSION_SOURCE = _source("""
    // Session management helpers
    const crypto = require('crypto');

    const store = new Map();

    function randomId() {
      return crypto.randomBytes(16).toString('hex');
    }

    function createSession(id) {
      const session = {
        id: id || randomId(),
        createdAt: Date.now(),
        data: {},
      };
      store.set(session.id, session);
      // new session is stored in memory
      console.log('session created', session.id);
      return session;
    }

    function destroySession(id) {
      store.delete(id);
    }

    function touch(id) {
      const s = store.get(id);
      if (s) s.updatedAt = Date.now();
    }

    module.exports = { createSession, destroySession, touch };
""")

# retryWithBackoff spans lines 7-18, attemptAgain lines 20-27
RETRY_SOURCE = _source("""
    const MAX_ATTEMPTS = 5;

    function sleep(ms) {
      return new Promise((resolve) => setTimeout(resolve, ms));
    }

    async function retryWithBackoff(fn, attempts = MAX_ATTEMPTS) {
      let delay = 100;
      for (let i = 0; i < attempts; i++) {
        try {
          return await fn();
        } catch (err) {
          await sleep(delay);
          delay *= 2;
        }
      }
      throw new Error('retries exhausted');
    }

    async function attemptAgain(task) {
      // repeat the task once more if it fails
      try {
        return await task();
      } catch (e) {
        return task();
      }
    }

    module.exports = { retryWithBackoff, attemptAgain, sleep };
""")

EXPRESS_SOURCE = _source("""
    const express = require('express');
    const app = express();

    const settings = {
      database: {
        host: 'localhost',
        port: 5432,
      },
      name: 'shop',
    };

    class UserRepository {
      constructor(db) {
        this.db = db;
      }

      findById(id) {
        return this.db.query('SELECT * FROM users WHERE id = $1', [id]);
      }
    }

    app.get('/users/:id', async (req, res) => {
      const repo = new UserRepository(req.db);
      const user = await repo.findById(req.params.id);
      res.json(user);
    });

    app.post('/orders', (req, res) => {
      const order = { items: req.body.items, total: 0 };
      res.status(201).json(order);
    });

    const handler = (err, req, res, next) => {
      console.error(err);
      res.status(500).send('error');
    };

    app.use(handler);

    app.listen(3000);
""")

TS_SOURCE = _source("""
    interface User {
      id: number;
      email: string;
    }

    type Role = 'admin' | 'user';

    export function isAdmin(user: User, role: Role): boolean {
      return role === 'admin';
    }
""")


@pytest.fixture
def session_source():
    return SESSION_SOURCE


@pytest.fixture
def retry_source():
    return RETRY_SOURCE


@pytest.fixture
def express_source():
    return EXPRESS_SOURCE


@pytest.fixture
def ts_source():
    return TS_SOURCE


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Point global and project config at a temporary directory."""
    home = tmp_path / "home" / ".spanseek"
    monkeypatch.setattr(config_module, "SPANSEEK_HOME", home)
    monkeypatch.setattr(config_module, "GLOBAL_CONFIG_FILE", home / "config.json")
    project = tmp_path / "project"
    project.mkdir()
    monkeypatch.chdir(project)
    for name in config_module.ENV_OVERRIDES:
        monkeypatch.delenv(name, raising=False)
    return home
