"""Contract interface constants for the voting and token contracts."""

# Voting contract (PowerVoting) read methods: signature -> output types
PROPOSAL_ID_SIGNATURE = "proposalId()"
PROPOSAL_ID_OUTPUT = ["uint256"]

ID_TO_PROPOSAL_SIGNATURE = "idToProposal(uint256)"
ID_TO_PROPOSAL_OUTPUT = [
    "string",  # cid
    "uint256",  # proposalType
    "address",  # creator
    "uint256",  # expTime
    "uint256",  # votesCount
]

PROPOSAL_TO_VOTE_SIGNATURE = "proposalToVote(uint256,uint256)"
PROPOSAL_TO_VOTE_OUTPUT = [
    "address",  # voter
    "string",  # voteInfo
]

# ERC-20 token weighting the votes
BALANCE_OF_SIGNATURE = "balanceOf(address)"
BALANCE_OF_OUTPUT = ["uint256"]
