from __future__ import annotations
from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from .base import ApiClient

DEAL_PROPERTIES = [
    "dealname", "amount", "dealstage", "pipeline", "closedate", "createdate",
    "hs_lastmodifieddate", "hubspot_owner_id", "description", "hs_deal_stage_probability",
]
CONTACT_PROPERTIES = [
    "email", "firstname", "lastname", "company", "phone", "jobtitle",
    "hs_lead_status", "createdate", "lastmodifieddate",
]


class HubSpotContactProperties(BaseModel):
    email: Optional[str] = None
    firstname: Optional[str] = None
    lastname: Optional[str] = None
    company: Optional[str] = None
    phone: Optional[str] = None
    jobtitle: Optional[str] = None
    hs_lead_status: Optional[str] = None
    createdate: Optional[str] = None
    lastmodifieddate: Optional[str] = None

class HubSpotContact(BaseModel):
    id: str
    properties: HubSpotContactProperties

class AssociationRef(BaseModel):
    id: str
    type: str

class AssociationList(BaseModel):
    results: List[AssociationRef]

class HubSpotAssociations(BaseModel):
    contacts: Optional[AssociationList] = None
    companies: Optional[AssociationList] = None

class HubSpotDealProperties(BaseModel):
    dealname: Optional[str] = None
    amount: Optional[str] = None
    dealstage: Optional[str] = None
    pipeline: Optional[str] = None
    closedate: Optional[str] = None
    createdate: Optional[str] = None
    hs_lastmodifieddate: Optional[str] = None
    hubspot_owner_id: Optional[str] = None
    description: Optional[str] = None
    hs_deal_stage_probability: Optional[str] = None

class HubSpotDeal(BaseModel):
    id: str
    properties: HubSpotDealProperties
    associations: Optional[HubSpotAssociations] = None

    @property
    def amount_value(self) -> float:
        """Deal amount in dollars; blank or garbage amounts count as 0."""
        try:
            return float(self.properties.amount or 0)
        except ValueError:
            return 0.0

class HubSpotPage(BaseModel):
    results: List[Any]
    paging: Optional[Dict[str, Any]] = None


class HubSpotClient(ApiClient):
    service = "HubSpot"

    def __init__(self, access_token: str, base_url: str = "https://api.hubapi.com", **kwargs):
        super().__init__(access_token, base_url, **kwargs)

    def get_deals(self, limit: int = 100, after: Optional[str] = None) -> HubSpotPage:
        params = {
            "limit": limit,
            "properties": ",".join(DEAL_PROPERTIES),
            "associations": "contacts,companies",
        }
        if after:
            params["after"] = after
        data = self._request("GET", "/crm/v3/objects/deals", params=params)
        return HubSpotPage(
            results=[HubSpotDeal.model_validate(d) for d in data.get("results", [])],
            paging=data.get("paging"),
        )

    def get_contacts(self, limit: int = 100, after: Optional[str] = None) -> HubSpotPage:
        params = {"limit": limit, "properties": ",".join(CONTACT_PROPERTIES)}
        if after:
            params["after"] = after
        data = self._request("GET", "/crm/v3/objects/contacts", params=params)
        return HubSpotPage(
            results=[HubSpotContact.model_validate(c) for c in data.get("results", [])],
            paging=data.get("paging"),
        )

    def get_deal_activities(self, deal_id: str) -> List[Dict[str, Any]]:
        return self._request("GET", f"/crm/v3/objects/deals/{deal_id}/associations/activities").get("results", [])

    def get_owner(self, owner_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/crm/v3/owners/{owner_id}")

    def search_deals(
        self,
        filters: Optional[List[Dict[str, str]]] = None,
        sorts: Optional[List[Dict[str, str]]] = None,
        limit: int = 100,
    ) -> List[HubSpotDeal]:
        body = {
            "filterGroups": [{"filters": filters}] if filters else [],
            "sorts": sorts or [],
            "properties": DEAL_PROPERTIES[:8],
            "limit": limit,
        }
        data = self._request("POST", "/crm/v3/objects/deals/search", json=body)
        return [HubSpotDeal.model_validate(d) for d in data.get("results", [])]

    def get_pipelines(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/crm/v3/pipelines/deals").get("results", [])

    def _ping(self) -> None:
        self._request("GET", "/crm/v3/objects/deals", params={"limit": 1})
