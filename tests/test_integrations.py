import json

import httpx
import pytest

from salespulse.integrations import GongClient, HubSpotClient, IntegrationError
from salespulse.integrations.base import ApiClient

DEAL = {
    "id": "101",
    "properties": {"dealname": "Acme renewal", "amount": "45000", "dealstage": "proposal",
                   "hubspot_owner_id": "hs-owner-001", "unknown_prop": "ignored"},
    "associations": {"contacts": {"results": [{"id": "7", "type": "deal_to_contact"}]}},
}
CALL = {
    "metaData": {"id": "c-1", "title": "Discovery", "started": "2024-06-10T15:00:00Z",
                 "duration": 1800, "primaryUserId": "gong-user-001"},
    "context": {"crmContext": [{"id": "101", "objectType": "Deal", "objectFields": {"name": "Acme"}}]},
    "parties": [{"id": "p-1", "name": "Jane", "emailAddress": "jane@acme.test", "speakerId": "s-1"}],
}


def _recorder(responses):
    """MockTransport answering by path; every request is kept for inspection."""
    seen = []

    def handler(request: httpx.Request):
        seen.append(request)
        status, body = responses[request.url.path]
        return httpx.Response(status, json=body)

    return httpx.MockTransport(handler), seen


def test_hubspot_get_deals_validates_and_sends_token():
    transport, seen = _recorder({"/crm/v3/objects/deals": (200, {"results": [DEAL], "paging": {"next": {"after": "2"}}})})
    client = HubSpotClient("tok", transport=transport)
    page = client.get_deals(limit=10, after="1")

    deal = page.results[0]
    assert deal.id == "101"
    assert deal.properties.dealname == "Acme renewal"
    assert deal.amount_value == 45000.0
    assert deal.associations.contacts.results[0].id == "7"
    assert page.paging == {"next": {"after": "2"}}

    req = seen[0]
    assert req.headers["Authorization"] == "Bearer tok"
    assert req.url.params["limit"] == "10"
    assert req.url.params["after"] == "1"
    assert "dealname" in req.url.params["properties"]


def test_hubspot_search_deals_body():
    transport, seen = _recorder({"/crm/v3/objects/deals/search": (200, {"results": [DEAL]})})
    client = HubSpotClient("tok", transport=transport)
    filters = [{"propertyName": "hubspot_owner_id", "operator": "EQ", "value": "hs-owner-001"}]
    deals = client.search_deals(filters=filters, limit=5)
    assert [d.id for d in deals] == ["101"]
    body = json.loads(seen[0].content)
    assert seen[0].method == "POST"
    assert body["filterGroups"] == [{"filters": filters}]
    assert body["limit"] == 5


def test_hubspot_error_status_raises():
    transport, _ = _recorder({"/crm/v3/owners/9": (401, {"message": "bad token"})})
    client = HubSpotClient("tok", transport=transport)
    with pytest.raises(IntegrationError) as err:
        client.get_owner("9")
    assert err.value.service == "HubSpot"
    assert err.value.status_code == 401


def test_hubspot_contacts_and_pipelines():
    transport, _ = _recorder({
        "/crm/v3/objects/contacts": (200, {"results": [{"id": "7", "properties": {"email": "a@b.test"}}]}),
        "/crm/v3/pipelines/deals": (200, {"results": [{"id": "default"}]}),
    })
    client = HubSpotClient("tok", transport=transport)
    assert client.get_contacts().results[0].properties.email == "a@b.test"
    assert client.get_pipelines() == [{"id": "default"}]


def test_amount_value_tolerates_garbage():
    from salespulse.integrations.hubspot import HubSpotDeal
    assert HubSpotDeal.model_validate({"id": "1", "properties": {"amount": "n/a"}}).amount_value == 0.0
    assert HubSpotDeal.model_validate({"id": "1", "properties": {}}).amount_value == 0.0


def test_test_connection_reports_failure():
    transport, _ = _recorder({"/crm/v3/objects/deals": (500, {})})
    result = HubSpotClient("tok", transport=transport).test_connection()
    assert result["success"] is False
    assert "HubSpot connection failed" in result["message"]

    transport, _ = _recorder({"/calls": (200, {"calls": []})})
    assert GongClient("tok", transport=transport).test_connection() == {
        "success": True, "message": "Gong connection successful",
    }


def test_gong_get_calls_parses_camel_case():
    transport, seen = _recorder({"/v2/calls": (200, {"calls": [CALL], "records": {"totalRecords": 1}, "cursor": "abc"})})
    client = GongClient("tok", transport=transport)
    page = client.get_calls(from_datetime="2024-06-01T00:00:00Z", to_datetime="2024-06-30T00:00:00Z", limit=20)

    call = page.calls[0]
    assert call.meta_data.id == "c-1"
    assert call.meta_data.primary_user_id == "gong-user-001"
    assert call.context.crm_context[0].object_type == "Deal"
    assert call.parties[0].email_address == "jane@acme.test"
    assert call.started_at.isoformat() == "2024-06-10T15:00:00+00:00"
    assert page.cursor == "abc"

    body = json.loads(seen[0].content)
    assert body["filter"] == {"fromDateTime": "2024-06-01T00:00:00Z", "toDateTime": "2024-06-30T00:00:00Z"}
    assert body["limit"] == 20
    assert body["contentSelector"]["includeCrmContext"] is True


def test_gong_transcript():
    transport, _ = _recorder({"/v2/calls/c-1/transcript": (200, {"callTranscript": [
        {"speakerId": "s-1", "sentences": [{"start": 0, "end": 4, "text": "Hi there"},
                                           {"start": 4, "end": 9, "text": "Thanks for joining"}]},
    ]})})
    transcript = GongClient("tok", transport=transport).get_call_transcript("c-1")
    assert transcript.call_id == "c-1"
    assert transcript.text() == "Hi there\nThanks for joining"


def test_gong_insights_fall_back_to_empty():
    transport, _ = _recorder({"/v2/calls/c-1/extensive": (404, {})})
    insight = GongClient("tok", transport=transport).get_call_insights("c-1")
    assert insight.call_id == "c-1"
    assert insight.insights.topics == []
    assert insight.insights.keywords == []
    assert insight.insights.sentiment.overall is None


def test_gong_insights_parsed():
    transport, _ = _recorder({"/v2/calls/c-1/extensive": (200, {
        "sentiment": {"overall": "positive"},
        "topics": [{"name": "Pricing", "confidence": 0.9, "mentions": []}],
        "keywords": [{"word": "budget", "count": 3, "confidence": 0.8}],
    })})
    insight = GongClient("tok", transport=transport).get_call_insights("c-1")
    assert insight.insights.sentiment.overall == "positive"
    assert insight.insights.topics[0].name == "Pricing"
    assert insight.insights.keywords[0].count == 3


def test_gong_search_by_crm_and_team_calls():
    transport, seen = _recorder({"/v2/calls": (200, {"calls": [CALL]})})
    client = GongClient("tok", transport=transport)
    assert client.search_calls_by_crm("101")[0].meta_data.id == "c-1"
    assert json.loads(seen[0].content)["filter"]["crmContext"] == {"id": "101", "system": "hubspot"}

    client.get_team_calls(["gong-user-001", "gong-user-002"])
    team_filter = json.loads(seen[1].content)["filter"]
    assert team_filter["users"] == ["gong-user-001", "gong-user-002"]
    assert "fromDateTime" in team_filter and "toDateTime" in team_filter


def test_gong_user_stats():
    transport, seen = _recorder({"/v2/stats/activity/detailed": (200, {"records": [{"userId": "u"}]})})
    records = GongClient("tok", transport=transport).get_user_stats("u", "2024-06-01", "2024-06-30")
    assert records == [{"userId": "u"}]
    assert json.loads(seen[0].content)["filter"]["users"] == ["u"]


def test_api_client_needs_a_ping():
    with pytest.raises(TypeError):
        ApiClient("t", "https://example.test")

    class NoPing(ApiClient):
        service = "Nothing"

    with pytest.raises(TypeError):
        NoPing("t", "https://example.test")
