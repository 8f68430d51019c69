"""GraphQL documents for the liquidity subgraph and the blocks subgraph."""

USER_SNAPSHOTS = """
query snapshots($user: Bytes!, $skip: Int!, $first: Int!) {
  liquidityPositionSnapshots(first: $first, skip: $skip, where: { user: $user }) {
    timestamp
    reserveUSD
    liquidityTokenBalance
    liquidityTokenTotalSupply
    reserve0
    reserve1
    token0PriceUSD
    token1PriceUSD
    pair {
      id
      token0 { id }
      token1 { id }
    }
  }
}
"""

PAIR_STATE = """
query pair($pair: Bytes!) {
  pair(id: $pair) {
    id
    totalSupply
    reserve0
    reserve1
    reserveUSD
    token0 { id derivedETH }
    token1 { id derivedETH }
  }
}
"""

ETH_PRICE = """
query bundle {
  bundle(id: "1") {
    ethPrice
  }
}
"""

PAIR_DAY_DATA_BULK = """
query pairDayDatas($pairs: [Bytes!]!, $since: Int!, $skip: Int!) {
  pairDayDatas(
    first: 1000
    skip: $skip
    orderBy: date
    orderDirection: asc
    where: { pairAddress_in: $pairs, date_gt: $since }
  ) {
    date
    pairAddress
    reserveUSD
    totalSupply
  }
}
"""


def blocks_query(timestamps: list[int]) -> str:
    fields = [
        f"""t{ts}: blocks(first: 1, orderBy: timestamp, orderDirection: asc, where: {{ timestamp_gt: {ts}, timestamp_lt: {ts + 600} }}) {{
    number
  }}"""
        for ts in timestamps
    ]
    return "query blocks {\n  " + "\n  ".join(fields) + "\n}"


def positions_by_block_query(account: str, blocks: list[tuple[int, int]]) -> str:
    fields = [
        f"""t{ts}: liquidityPositions(where: {{ user: "{account}" }}, block: {{ number: {number} }}) {{
    liquidityTokenBalance
    pair {{ id totalSupply reserveUSD }}
  }}"""
        for ts, number in blocks
    ]
    return "query positions {\n  " + "\n  ".join(fields) + "\n}"


def pair_states_by_block_query(pair_id: str, blocks: list[tuple[int, int]]) -> str:
    fields = []
    for ts, number in blocks:
        fields.append(
            f"""t{ts}: pair(id: "{pair_id}", block: {{ number: {number} }}) {{
    reserve0
    reserve1
    reserveUSD
    totalSupply
    token0 {{ id derivedETH }}
    token1 {{ id derivedETH }}
  }}"""
        )
        fields.append(
            f"""b{ts}: bundle(id: "1", block: {{ number: {number} }}) {{
    ethPrice
  }}"""
        )
    return "query pairStates {\n  " + "\n  ".join(fields) + "\n}"
