"""
GoHighLevel API client — contacts, pipelines and opportunities for one location.

Response handling shared by every call:
  - missing API key → ConfigurationError before any request is made
  - 401 → AuthenticationError
  - 422 → empty result (not an error)
  - 304 → not modified (conditional opportunity fetch only)
  - other non-2xx → GHLAPIError
  - connection failure → ServiceUnreachableError, timeout → ServiceTimeoutError

Transport failures and 5xx responses count against the 'ghl' circuit breaker.
Raw API payloads are reshaped by the normalize_* functions below; nothing
downstream reads GoHighLevel field names directly.
"""
import logging
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional

import requests

from sizzle.config import (
    GHL_API_KEY, GHL_API_URL, GHL_API_VERSION, GHL_LOCATION_ID, GHL_TIMEOUT,
)
from sizzle.exceptions import (
    AuthenticationError, ConfigurationError, GHLAPIError,
    ServiceTimeoutError, ServiceUnreachableError, ValidationError,
)

logger = logging.getLogger('services.ghl')


# ── Internal shapes ──────────────────────────────────────────────────────────

@dataclass
class Opportunity:
    id: str
    title: str
    value: float = 0.0
    status: str = 'open'
    stage_id: str = ''
    pipeline_id: str = ''
    contact_id: str = ''
    notes: str = ''
    tags: List[str] = field(default_factory=list)
    date_added: Optional[str] = None
    date_updated: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class PipelineStage:
    id: str
    name: str
    order: int = 0


@dataclass
class Pipeline:
    id: str
    name: str
    stages: List[PipelineStage] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class Contact:
    id: str
    first_name: str = ''
    last_name: str = ''
    email: str = ''
    phone: str = ''
    tags: List[str] = field(default_factory=list)
    date_added: Optional[str] = None
    date_updated: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class OpportunityPage:
    """One page of opportunities, or a 'not modified' answer to a conditional fetch."""
    opportunities: List[Opportunity] = field(default_factory=list)
    meta: Dict[str, Any] = field(default_factory=dict)
    last_modified: Optional[str] = None
    not_modified: bool = False


def _empty_meta(page=1):
    return {'total': 0, 'count': 0, 'current_page': page, 'total_pages': 1}


def _first(raw: Dict[str, Any], *keys, default=None):
    for key in keys:
        value = raw.get(key)
        if value not in (None, ''):
            return value
    return default


def _float(value) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


# ── Normalization ────────────────────────────────────────────────────────────

def normalize_opportunity(raw: Dict[str, Any]) -> Opportunity:
    """Map any historical opportunity payload shape onto Opportunity."""
    contact = raw.get('contact') or {}
    return Opportunity(
        id=str(raw.get('id', '')),
        title=_first(raw, 'title', 'name', default=''),
        value=_float(_first(raw, 'value', 'monetaryValue', default=0)),
        status=_first(raw, 'status', default='open'),
        stage_id=_first(raw, 'stage', 'pipelineStageId', 'stageId', default=''),
        pipeline_id=_first(raw, 'pipelineId', default=''),
        contact_id=_first(raw, 'contactId', default=contact.get('id', '')),
        notes=_first(raw, 'notes', default=''),
        tags=list(raw.get('tags') or []),
        date_added=_first(raw, 'dateAdded', 'createdAt'),
        date_updated=_first(raw, 'dateUpdated', 'updatedAt', 'lastStatusChangeAt'),
    )


def normalize_pipeline(raw: Dict[str, Any]) -> Pipeline:
    stages = [
        PipelineStage(
            id=str(s.get('id', '')),
            name=s.get('name', ''),
            order=int(s.get('order') if s.get('order') is not None else position),
        )
        for position, s in enumerate(raw.get('stages') or [])
    ]
    stages.sort(key=lambda s: s.order)
    return Pipeline(id=str(raw.get('id', '')), name=raw.get('name', ''), stages=stages)


def normalize_contact(raw: Dict[str, Any]) -> Contact:
    return Contact(
        id=str(raw.get('id', '')),
        first_name=_first(raw, 'firstName', 'first_name', default=''),
        last_name=_first(raw, 'lastName', 'last_name', default=''),
        email=_first(raw, 'email', default=''),
        phone=_first(raw, 'phone', default=''),
        tags=list(raw.get('tags') or []),
        date_added=_first(raw, 'dateAdded', 'createdAt'),
        date_updated=_first(raw, 'dateUpdated', 'updatedAt'),
    )


def normalize_meta(raw: Optional[Dict[str, Any]], page=1) -> Dict[str, Any]:
    if not raw:
        return _empty_meta(page)
    return {
        'total': raw.get('total', 0),
        'count': raw.get('count', 0),
        'current_page': raw.get('currentPage', page),
        'total_pages': raw.get('totalPages', 1),
    }


_OPPORTUNITY_FIELDS = {
    'title': 'title',
    'value': 'value',
    'status': 'status',
    'stage_id': 'stage',
    'pipeline_id': 'pipelineId',
    'contact_id': 'contactId',
    'notes': 'notes',
    'tags': 'tags',
}

_CONTACT_FIELDS = {
    'first_name': 'firstName',
    'last_name': 'lastName',
    'email': 'email',
    'phone': 'phone',
    'tags': 'tags',
}


def _to_payload(changes: Dict[str, Any], mapping: Dict[str, str]) -> Dict[str, Any]:
    unknown = set(changes) - set(mapping)
    if unknown:
        raise ValidationError(f"Unknown fields: {', '.join(sorted(unknown))}")
    return {mapping[k]: v for k, v in changes.items()}


# ── Client ───────────────────────────────────────────────────────────────────

class GHLClient:
    """Thin GoHighLevel REST client scoped to one location."""

    def __init__(self, api_key: Optional[str] = None, location_id: Optional[str] = None,
                 base_url: Optional[str] = None, timeout: Optional[float] = None, breaker=None):
        self.api_key = api_key if api_key is not None else GHL_API_KEY
        self.location_id = location_id or GHL_LOCATION_ID
        self.base_url = (base_url or GHL_API_URL).rstrip('/')
        self.timeout = timeout or GHL_TIMEOUT
        self._breaker = breaker
        self.session = requests.Session()

    @property
    def breaker(self):
        if self._breaker is None:
            from sizzle.services.circuit_breaker import get_breaker
            self._breaker = get_breaker('ghl')
        return self._breaker

    def _headers(self) -> Dict[str, str]:
        if not self.api_key:
            raise ConfigurationError('GHL API key is not configured')
        return {
            'Authorization': f'Bearer {self.api_key}',
            'Accept': 'application/json',
            'Content-Type': 'application/json',
            'Version': GHL_API_VERSION,
        }

    def _send(self, method: str, url: str, headers: Dict[str, str], **kwargs) -> requests.Response:
        try:
            response = self.session.request(method, url, headers=headers, timeout=self.timeout, **kwargs)
        except requests.exceptions.Timeout:
            raise ServiceTimeoutError(self.timeout)
        except requests.exceptions.ConnectionError:
            raise ServiceUnreachableError()
        if response.status_code >= 500:
            raise GHLAPIError(response.status_code)
        return response

    def _request(self, method: str, path: str, extra_headers: Optional[Dict[str, str]] = None,
                 **kwargs) -> Optional[requests.Response]:
        """
        Send one request and apply the shared status mapping.

        Returns the response for 2xx and 304, None for 422 (caller substitutes
        an empty result). Raises for everything else.
        """
        headers = self._headers()
        if extra_headers:
            headers.update(extra_headers)
        url = f"{self.base_url}{path}"

        logger.debug("%s %s", method, url)
        try:
            response = self.breaker.call(self._send, method, url, headers, **kwargs)
        except (ServiceTimeoutError, ServiceUnreachableError, GHLAPIError) as e:
            logger.error("GHL %s %s failed: %s", method, path, e)
            raise

        if response.status_code == 401:
            logger.error("GHL rejected API key on %s %s", method, path)
            raise AuthenticationError()
        if response.status_code == 422:
            logger.warning("GHL returned 422 on %s %s — treating as empty", method, path)
            return None
        if response.status_code == 304:
            return response
        if not response.ok:
            logger.error("GHL %s %s → HTTP %d", method, path, response.status_code)
            raise GHLAPIError(response.status_code)
        return response

    # ── Locations ─────────────────────────────────────────────────────

    def get_locations(self) -> List[Dict[str, Any]]:
        response = self._request('GET', '/locations/')
        if response is None:
            return []
        return response.json().get('locations') or []

    # ── Contacts ──────────────────────────────────────────────────────

    def get_contacts(self, page: int = 1, limit: int = 100) -> Dict[str, Any]:
        response = self._request('GET', '/contacts/', params={
            'locationId': self.location_id, 'page': page, 'limit': limit,
        })
        if response is None:
            return {'contacts': [], 'meta': _empty_meta(page)}
        data = response.json()
        return {
            'contacts': [normalize_contact(c) for c in data.get('contacts') or []],
            'meta': normalize_meta(data.get('meta'), page),
        }

    def search_contacts(self, query: str, page_limit: int = 10) -> List[Contact]:
        response = self._request('POST', '/contacts/search', json={
            'locationId': self.location_id, 'pageLimit': page_limit, 'query': query,
        })
        if response is None:
            return []
        return [normalize_contact(c) for c in response.json().get('contacts') or []]

    def create_contact(self, **fields) -> Optional[Contact]:
        response = self._request(
            'POST', '/contacts/',
            params={'locationId': self.location_id},
            json=_to_payload(fields, _CONTACT_FIELDS),
        )
        if response is None:
            return None
        data = response.json()
        return normalize_contact(data.get('contact') or data)

    def update_contact(self, contact_id: str, **fields) -> Optional[Contact]:
        response = self._request(
            'PUT', f'/contacts/{contact_id}',
            params={'locationId': self.location_id},
            json=_to_payload(fields, _CONTACT_FIELDS),
        )
        if response is None:
            return None
        data = response.json()
        return normalize_contact(data.get('contact') or data)

    # ── Pipelines & opportunities ─────────────────────────────────────

    def get_pipelines(self) -> List[Pipeline]:
        response = self._request('GET', '/opportunities/pipelines', params={'locationId': self.location_id})
        if response is None:
            return []
        return [normalize_pipeline(p) for p in response.json().get('pipelines') or []]

    def get_opportunities(self, pipeline_id: str, last_modified: Optional[str] = None,
                          page: int = 1, limit: int = 100) -> OpportunityPage:
        """
        Search a pipeline's opportunities.

        When last_modified is given it is sent as If-Modified-Since; a 304
        answer comes back as OpportunityPage(not_modified=True).
        """
        extra = {'If-Modified-Since': last_modified} if last_modified else None
        response = self._request(
            'GET', '/opportunities/search',
            extra_headers=extra,
            params={
                'locationId': self.location_id, 'pipelineId': pipeline_id,
                'page': page, 'limit': limit,
            },
        )
        if response is None:
            return OpportunityPage(meta=_empty_meta(page))
        if response.status_code == 304:
            return OpportunityPage(last_modified=last_modified, not_modified=True)

        data = response.json()
        return OpportunityPage(
            opportunities=[normalize_opportunity(o) for o in data.get('opportunities') or []],
            meta=normalize_meta(data.get('meta'), page),
            last_modified=response.headers.get('Last-Modified'),
        )

    def create_opportunity(self, **fields) -> Optional[Opportunity]:
        response = self._request(
            'POST', '/opportunities/',
            params={'locationId': self.location_id},
            json=_to_payload(fields, _OPPORTUNITY_FIELDS),
        )
        if response is None:
            return None
        data = response.json()
        return normalize_opportunity(data.get('opportunity') or data)

    def update_opportunity(self, opportunity_id: str, **fields) -> Optional[Opportunity]:
        response = self._request(
            'PUT', f'/opportunities/{opportunity_id}',
            params={'locationId': self.location_id},
            json=_to_payload(fields, _OPPORTUNITY_FIELDS),
        )
        if response is None:
            return None
        data = response.json()
        return normalize_opportunity(data.get('opportunity') or data)
