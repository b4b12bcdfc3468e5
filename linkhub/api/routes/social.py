"""Social account connection endpoints (OAuth redirect flow, refresh, disconnect)."""

from html import escape

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import HTMLResponse, RedirectResponse

from linkhub.api.dependencies import get_current_user_id
from linkhub.exceptions import (
    AccountNotFoundError,
    OAuthStateError,
    PlatformAPIError,
    PlatformNotConfiguredError,
)
from linkhub.services.core.oauth_service import OAuthService
from linkhub.services.integrations.token_refresh import TokenRefreshService
from linkhub.utils.logger import logger

router = APIRouter(tags=["social"])


@router.get("")
async def list_accounts(user_id=Depends(get_current_user_id)):
    """The caller's connected, usable accounts (no tokens)."""
    service = OAuthService()
    try:
        return {"accounts": [account.to_public_dict() for account in service.list_accounts(user_id)]}
    finally:
        service.close()


@router.get("/start/{provider}")
async def oauth_start(provider: str, user_id=Depends(get_current_user_id)):
    """Redirect the caller to the provider's authorization page."""
    service = OAuthService()
    try:
        auth_url = service.generate_authorization_url(user_id, provider)
        return RedirectResponse(url=auth_url)
    except PlatformNotConfiguredError as e:
        raise HTTPException(status_code=400, detail=str(e))
    finally:
        service.close()


@router.api_route("/callback/{provider}", methods=["GET", "POST"])
async def oauth_callback(
    provider: str,
    code: str = Query(None, description="Authorization code from the provider"),
    state: str = Query(None, description="State issued by /start"),
    error: str = Query(None, description="Error code if user denied"),
    error_description: str = Query(None, description="Human-readable error"),
):
    """
    Handle the provider redirect.

    Consumes the state, exchanges the code and stores the account.
    """
    service = OAuthService()
    try:
        if error:
            logger.warning(f"{provider} OAuth denied: {error} - {error_description}")
            if state:
                try:
                    service.consume_state(state, provider)
                except OAuthStateError:
                    pass  # Nothing to clean up
            return _error_html_page(
                "Connection Cancelled",
                f"The {provider} connection was cancelled. You can try again from LinkHub.",
            )

        if not code or not state:
            return _error_html_page("Connection Failed", "Missing authorization code or state.")

        account = await service.exchange_and_store(provider, code, state)
        return _success_html_page(provider, account.get("account_handle") or account.get("account_id"))

    except OAuthStateError as e:
        logger.error(f"Invalid {provider} OAuth state: {e}")
        return _error_html_page(
            "Link Expired",
            "This authorization link has expired or is invalid. Please start again from LinkHub.",
        )
    except PlatformNotConfiguredError as e:
        return _error_html_page("Not Available", str(e))
    except Exception as e:
        logger.error(f"{provider} OAuth callback error: {e}", exc_info=True)
        return _error_html_page(
            "Connection Failed",
            f"Something went wrong connecting your {provider} account. Please try again.",
        )
    finally:
        service.close()


@router.post("/refresh/{provider}")
async def refresh_account(provider: str, user_id=Depends(get_current_user_id)):
    """Refresh the caller's token for one provider now."""
    service = TokenRefreshService()
    try:
        account = await service.refresh_account_for_user_provider(user_id, provider)
        return {
            "refreshed": account.sync_status != "failed",
            "error": account.sync_error,
            "account": account.to_public_dict(),
        }
    except AccountNotFoundError:
        raise HTTPException(status_code=404, detail=f"No {provider} account connected")
    except PlatformAPIError as e:
        raise HTTPException(status_code=502, detail=str(e))
    finally:
        service.close()


@router.post("/disconnect/{provider}")
async def disconnect_account(provider: str, user_id=Depends(get_current_user_id)):
    """Revoke the caller's account for one provider."""
    service = OAuthService()
    try:
        account = service.disconnect(user_id, provider)
        return {"account": account.to_public_dict()}
    except AccountNotFoundError:
        raise HTTPException(status_code=404, detail=f"No {provider} account connected")
    finally:
        service.close()


def _page(title: str, heading_color: str, body: str, status_code: int) -> HTMLResponse:
    return HTMLResponse(
        content=f"""
        <!DOCTYPE html>
        <html>
        <head><title>LinkHub - {escape(title)}</title>
        <style>
            body {{ font-family: -apple-system, sans-serif; text-align: center;
                   padding: 60px 20px; background: #f5f5f5; }}
            .card {{ background: white; border-radius: 12px; padding: 40px;
                    max-width: 400px; margin: 0 auto;
                    box-shadow: 0 2px 8px rgba(0,0,0,0.1); }}
            h1 {{ color: {heading_color}; }}
            p {{ color: #666; }}
        </style></head>
        <body>
        <div class="card">
            <h1>{escape(title)}</h1>
            {body}
        </div>
        </body></html>
        """,
        status_code=status_code,
    )


def _success_html_page(provider: str, handle: str) -> HTMLResponse:
    """Return a simple HTML success page."""
    return _page(
        "Connected!",
        "#22c55e",
        f"<p>Your {escape(provider)} account <strong>{escape(handle or '')}</strong> "
        f"has been connected to LinkHub.</p><p>You can close this window.</p>",
        200,
    )


def _error_html_page(title: str, message: str) -> HTMLResponse:
    """Return a simple HTML error page."""
    return _page(title, "#ef4444", f"<p>{escape(message)}</p>", 400)
