from .packet_royale_env import PacketRoyaleEnv
from .rew_shaper import RewardShaping

__all__ = ["PacketRoyaleEnv", "RewardShaping"]
