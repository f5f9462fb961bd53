"""Consumer-group library: heartbeats, shard workers and checkpoints."""