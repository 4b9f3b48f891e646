"""Bearer token extraction for the summary API."""

from fastapi import Header, HTTPException


async def salesforce_token(authorization: str | None = Header(None)) -> str:
    """
    Return the caller's Salesforce access token.

    The same token is used for every Salesforce call of the run and for
    the completion callback.
    """
    scheme, _, token = (authorization or "").partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise HTTPException(status_code=401, detail="Invalid or missing bearer token")
    return token.strip()
