from __future__ import annotations

from html import escape

from shopbot.models.tenant import Tenant

_STYLE = (
    "body{font-family:-apple-system,BlinkMacSystemFont,'Segoe UI',sans-serif;"
    "max-width:640px;margin:48px auto;padding:0 16px;color:#1f2933}"
    "code{display:block;background:#f4f5f7;padding:12px;border-radius:6px;word-break:break-all}"
    ".ok{color:#0a7d45}.fail{color:#b42318}"
)


def _page(title: str, body: str) -> str:
    return (
        "<!DOCTYPE html><html lang=\"en\"><head><meta charset=\"utf-8\">"
        f"<title>{escape(title)}</title><style>{_STYLE}</style></head>"
        f"<body>{body}</body></html>"
    )


def connected_page(tenant: Tenant, script_url: str) -> str:
    features = "".join(f"<li>{escape(item['name'])}</li>" for item in tenant.public_view()["features"])
    return _page(
        "Store connected",
        f"<h1 class=\"ok\">{escape(tenant.display_name)} is connected</h1>"
        "<p>Paste this webhook URL into your chat bot's message handler:</p>"
        f"<code>{escape(tenant.webhook_url)}</code>"
        f"<p>Bot ID: <strong>{escape(tenant.tenant_id)}</strong></p>"
        f"<p>Or <a href=\"{escape(script_url)}\">download a ready-made message handler</a>.</p>"
        f"<p>Enabled for your store:</p><ul>{features}</ul>",
    )


def failure_page(reason: str) -> str:
    return _page(
        "Connection failed",
        "<h1 class=\"fail\">We couldn't connect your store</h1>"
        f"<p>{escape(reason)}</p>"
        "<p>Please start the installation again from your store admin.</p>",
    )


def _comment(text: str) -> str:
    return " ".join(str(text).split())


def bot_script(tenant: Tenant, generated_at: str) -> str:
    """A Deluge message handler that relays every visitor message to the webhook."""
    features = "\n".join(
        f"// - {_comment(item['name'])}: {_comment(item.get('reason', ''))}"
        for item in tenant.public_view()["features"]
    )
    return f"""// Message handler for {_comment(tenant.display_name)} ({tenant.shop_domain})
// Bot ID: {tenant.tenant_id}
// Generated: {generated_at}

WEBHOOK_URL = "{tenant.webhook_url}";

payload = Map();
payload.put("message", message);
payload.put("visitor", visitor);

response = invokeurl
[
	url :WEBHOOK_URL
	type :POST
	parameters:payload.toString()
	headers:{{"Content-Type":"application/json"}}
];

if(response == null || response.get("action") == null)
{{
	response = Map();
	response.put("action", "reply");
	response.put("replies", ["Sorry, I'm having trouble right now. Please try again in a moment."]);
}}
return response;

// Detected features:
{features}
"""
