import uuid
from dataclasses import dataclass
import requests

@dataclass
class RazorpayConfig:
    key_id: str             # rzp_test_... / rzp_live_...
    key_secret: str         # also the checkout signature secret
    api_base: str = "https://api.razorpay.com"
    timeout: int = 25
    sandbox: bool = False   # issue local order ids instead of calling the orders API

class RazorpayError(RuntimeError):
    pass

class RazorpayClient:
    def __init__(self, cfg: RazorpayConfig):
        self.cfg = cfg
        self._session = requests.Session()
        self._session.auth = (cfg.key_id, cfg.key_secret)
        self._session.headers.update({"Content-Type": "application/json", "Accept": "application/json"})

    def request(self, method: str, path: str, payload: dict | None = None) -> dict:
        url = f"{self.cfg.api_base.rstrip('/')}{path}"
        try:
            r = self._session.request(method=method.upper(), url=url, json=payload or {}, timeout=self.cfg.timeout)
        except requests.RequestException as e:
            raise RazorpayError(f"Razorpay request failed: {e}") from e
        try:
            data = r.json() if r.text else {}
        except ValueError:
            data = {"raw": r.text}
        if r.status_code >= 400:
            err = data.get("error") if isinstance(data, dict) else None
            desc = err.get("description") if isinstance(err, dict) else data
            raise RazorpayError(f"Razorpay {r.status_code}: {desc}")
        return data

    def create_order(self, *, amount_minor: int, currency: str, receipt: str, notes: dict | None = None) -> dict:
        """Open an order; ``amount_minor`` is already in the smallest currency unit (paise)."""
        payload = {
            "amount": int(amount_minor),
            "currency": currency,
            "receipt": receipt,
            "notes": notes or {},
        }
        if self.cfg.sandbox:
            return {"id": f"order_sandbox_{uuid.uuid4().hex[:14]}", "status": "created", **payload}
        return self.request("POST", "/v1/orders", payload)
