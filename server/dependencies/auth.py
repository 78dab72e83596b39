import secrets

from fastapi import Header, HTTPException, Request


async def verify_api_key(request: Request, x_api_key: str = Header(..., alias="X-API-Key")) -> None:
    """Reject requests whose X-API-Key header does not equal APP_API_KEY.

    Raises:
        HTTPException: 401 on a mismatch.
        ConfigurationError: If APP_API_KEY is not configured (mapped to 400).
    """
    expected_key = request.app.state.helper_config.get_string_val("APP_API_KEY")
    if not secrets.compare_digest(x_api_key.encode("utf-8"), expected_key.encode("utf-8")):
        raise HTTPException(status_code=401, detail="Invalid or missing API key")
