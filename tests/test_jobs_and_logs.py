import json

import redis

import salespulse.database as database
import salespulse.redis_store as redis_store
from salespulse.database import MemoryStore
from salespulse.jobs import rescore
from salespulse.schemas import LeadCreate


class FakeRedis:
    def __init__(self):
        self.lists = {}
        self.ttls = {}

    def rpush(self, key, value):
        self.lists.setdefault(key, []).append(value)

    def expire(self, key, ttl):
        self.ttls[key] = ttl

    def lrange(self, key, start, end):
        items = self.lists.get(key, [])
        return items[start:] if end == -1 else items[start:end + 1]


class BrokenRedis:
    def rpush(self, key, value):
        raise redis.ConnectionError("gone")

    def lrange(self, key, start, end):
        raise redis.ConnectionError("gone")


def test_event_log_round_trip(monkeypatch):
    fake = FakeRedis()
    monkeypatch.setattr(redis_store, "SAVE_LOGS", True)
    monkeypatch.setattr(redis_store, "client", lambda: fake)
    for i in range(3):
        redis_store.log_event("leads", "lead_created", {"id": i})

    key = redis_store._key("leads")
    assert fake.ttls[key] > 0
    items = redis_store.read_logs("leads", last_n=2)
    assert [x["id"] for x in items] == [1, 2]
    assert items[0]["kind"] == "lead_created"
    assert json.loads(fake.lists[key][0])["id"] == 0


def test_event_log_swallows_redis_failures(monkeypatch):
    monkeypatch.setattr(redis_store, "SAVE_LOGS", True)
    monkeypatch.setattr(redis_store, "client", lambda: BrokenRedis())
    redis_store.log_event("leads", "lead_created", {"id": 1})
    assert redis_store.read_logs("leads") == []


def test_rescore_job(monkeypatch, capsys):
    store = MemoryStore()
    lead = store.create_lead(LeadCreate(company_name="Acme", budget_range="$150K+"))
    store._set_ai_score(lead.id, 0)
    monkeypatch.setattr(database, "_store", store)

    assert rescore.main(dry_run=True) == 1
    assert "Would rescore: 1 leads" in capsys.readouterr().out
    assert store.get_lead(lead.id).ai_score == 0

    assert rescore.main(dry_run=False) == 1
    assert store.get_lead(lead.id).ai_score == 75
