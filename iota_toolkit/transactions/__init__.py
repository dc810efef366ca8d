"""
Transaction construction and BCS encoding.
"""
from .bcs import BcsWriter, decode_u64, uleb128
from .transaction import GAS_COIN, IOTA_COIN_TYPE, Argument, Transaction

__all__ = ['BcsWriter', 'decode_u64', 'uleb128', 'GAS_COIN', 'IOTA_COIN_TYPE', 'Argument', 'Transaction']
