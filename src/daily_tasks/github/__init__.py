"""GitHub REST client implementing the RemoteStatusResolver port."""
