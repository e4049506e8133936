"""archgraph: synthesize a CALM architecture graph from codebase facts."""
