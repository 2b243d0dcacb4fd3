"""
Commands - CLI command implementations for l1x-forge.

- vm-install-contract: deploy (and for ebpf, initialize) an artifact
- vm-sub-txn:          call a recorded contract (submit or read-only)
- vm-transfer:         native token transfer
"""
