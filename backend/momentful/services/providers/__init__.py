"""Generation provider clients.

Each provider module follows the same async task pattern:
  POST create task → GET status (polled via services.poller) → download output
"""
