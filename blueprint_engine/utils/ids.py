import uuid


def generate_blueprint_id() -> str:
  """Return a new blueprint identifier."""
  return str(uuid.uuid4())


def generate_request_id() -> str:
  """Return a correlation id for one request or pipeline run."""
  return uuid.uuid4().hex
