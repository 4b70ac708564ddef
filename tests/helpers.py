def staff_headers(user_id=None):
    headers = {"X-User-Role": "staff"}
    if user_id is not None:
        headers["X-User-Id"] = str(user_id)
    return headers


def client_headers(user_id):
    return {"X-User-Id": str(user_id), "X-User-Role": "client"}
