# trustexec

`trustexec` checks answers from an untrusted Ethereum execution RPC against
blocks you already trust. Account balances, nonces, code and storage slots are
verified with Merkle-Patricia proofs against the block's state root; receipts
and logs are verified against the block's receipts root. A failed check raises
an exception instead of returning data.

## Installation

```
pip install trustexec
```

## Modules

- `trustexec.rlp`: `keccak256`, `encode`, `decode` and `decode_list`.
- `trustexec.proof`: `verify_proof` and `encode_account`, plus the nibble
  helpers `get_nibble`, `skip_length`, `paths_match`, `shared_prefix_length`
  and `is_empty_value`.
- `trustexec.trie`: `ordered_trie_root`, the root of a trie whose i-th item is
  stored under the key `rlp(i)`.
- `trustexec.types`: `Block`, `Transaction`, `Account`, `CallOpts`, `Log`,
  `TransactionReceipt`, `StorageProof`, `ProofResponse`, `AccessListItem`,
  `Filter`, `FeeHistory`, and block tags: `Tag` (`LATEST`, `FINALIZED`), a
  block number as a plain `int`, and `parse_block_tag` to read either from
  text.
- `trustexec.state.State`: an in-memory history of the most recent
  `history_length` blocks plus the finalized block. Blocks are added with
  `push_block` / `push_finalized_block`, or by `run(block_queue,
  finalized_queue)`, which consumes two `asyncio.Queue`s until cancelled.
- `trustexec.rpc`: the abstract `ExecutionRpc` interface and `MockRpc`, which
  answers from JSON files in a directory (`proof.json`, `code.json`,
  `receipt.json`, `transaction.json`, `logs.json`, `fee_history.json`); its
  other methods raise `RpcError`.
- `trustexec.http_rpc.HttpRpc`: a JSON-RPC client over HTTP. It retries with
  backoff when the endpoint answers with status or error code 429, and can be
  used as an async context manager or closed with `close()`.
- `trustexec.execution.ExecutionClient`: the verifying client, and
  `encode_receipt`, the consensus encoding of a receipt.
- `trustexec.errors`: `ExecutionError` and its subclasses (such as
  `InvalidAccountProof`, `InvalidStorageProof`, `CodeHashMismatch`,
  `ReceiptRootMismatch`, `TooManyLogsToProve`, `BlockNotFoundError`), `RpcError`,
  `EvmError`, `Revert` and `decode_revert_reason`.

## Example

```python
import asyncio

from trustexec.execution import ExecutionClient
from trustexec.http_rpc import HttpRpc
from trustexec.state import State
from trustexec.types import Tag


async def main():
    state = State(history_length=64)
    # Feed blocks you trust before querying:
    # await state.push_block(block)

    async with HttpRpc("http://localhost:8545") as rpc:
        client = ExecutionClient(rpc, state)
        address = bytes.fromhex("00000000219ab540356cbb839cbe05303d7705fa")
        account = await client.get_account(address, None, Tag.LATEST)
        print(account.balance, account.nonce)


asyncio.run(main())
```

If the RPC returns a proof that does not match the trusted state root,
`get_account` raises `InvalidAccountProof`. `get_logs` and
`get_filter_changes` prove at most five logs per query; a larger result raises
`TooManyLogsToProve`. A filter without `to_block` or `block_hash` is bounded to
the newest block held in the `State`.

## What it does not do

- It does not obtain trusted blocks itself. There is no consensus sync: the
  blocks in `State` must come from a source you trust.
- It does not execute contract code. There is no EVM, so no local `eth_call`
  or gas estimation.
- It keeps nothing on disk and offers no command-line tool or RPC server.

## Tests

Install the `test` extra and run `pytest`.