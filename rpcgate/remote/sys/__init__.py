"""System remote modules shipped with rpcgate, one package per server role."""
