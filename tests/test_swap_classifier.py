import unittest

from basewatch.adapters.chain.static_chain_adapter import StaticChainAdapter
from basewatch.core.dto import RawLog, RawReceipt, RawTransaction, TokenInfo
from basewatch.core.enums import AnalysisType
from basewatch.core.models import BuyResult, NoTrade, SellResult, SwapResult
from basewatch.services.swap_classifier import SwapClassifier, resolve_dex_name
from basewatch.services.token_resolver import TokenMetadataResolver
from basewatch.services.transfer_decoder import TRANSFER_TOPIC, TransferLogDecoder


WALLET = "0xab5801a7d398351b8be11c439e05c5b3259aec9b"
ROUTER = "0x2626664c2603336e57b271c5c0b26f421741e481"     # Uniswap V3 Router
OTHER = "0x1111111111111111111111111111111111111111"
TOKEN_A = "0x4200000000000000000000000000000000000006"
TOKEN_B = "0x833589fcd6edb6e08f4c7c32d4f71b54bda02913"


def _topic(addr: str) -> str:
    return "0x" + "0" * 24 + addr[2:].lower()


def _transfer(token: str, frm: str, to: str, value: int) -> RawLog:
    return RawLog(
        address=token,
        topics=(TRANSFER_TOPIC, _topic(frm), _topic(to)),
        data="0x" + format(value, "064x"),
    )


def _tx(to=ROUTER, value_wei=0) -> RawTransaction:
    return RawTransaction(tx_hash="0xabc", from_address=WALLET, to_address=to, value_wei=value_wei)


def _receipt(*logs: RawLog) -> RawReceipt:
    return RawReceipt(tx_hash="0xabc", status=1, gas_used=150_000, logs=tuple(logs))


class SwapClassifierTests(unittest.TestCase):
    def setUp(self) -> None:
        chain = StaticChainAdapter(tokens={
            TOKEN_A: TokenInfo(address=TOKEN_A, symbol="WETH", name="Wrapped Ether", decimals=18),
            TOKEN_B: TokenInfo(address=TOKEN_B, symbol="USDC", name="USD Coin", decimals=6),
        })
        resolver = TokenMetadataResolver(chain)
        self.addCleanup(resolver.close)
        self.classifier = SwapClassifier(TransferLogDecoder(resolver))

    def test_two_sided_transfer_on_known_router_is_swap(self) -> None:
        receipt = _receipt(
            _transfer(TOKEN_A, WALLET, ROUTER, 10**18),
            _transfer(TOKEN_B, ROUTER, WALLET, 500_000_000),
        )

        result = self.classifier.classify(_tx(), receipt, WALLET)

        self.assertIsInstance(result, SwapResult)
        self.assertEqual(result.kind, AnalysisType.SWAP)
        self.assertEqual(result.dex, "Uniswap V3 Router")
        self.assertEqual(result.token_in.token_address, TOKEN_A)
        self.assertEqual(result.token_in.scaled_value, "1.0")
        self.assertEqual(result.token_out.token_address, TOKEN_B)
        self.assertEqual(result.token_out.scaled_value, "500.0")
        self.assertEqual(len(result.all_transfers), 2)

    def test_swap_takes_first_leg_on_each_side(self) -> None:
        receipt = _receipt(
            _transfer(TOKEN_B, OTHER, WALLET, 1),
            _transfer(TOKEN_A, WALLET, ROUTER, 2),
            _transfer(TOKEN_A, WALLET, OTHER, 3),
            _transfer(TOKEN_A, ROUTER, WALLET, 4),
        )

        result = self.classifier.classify(_tx(), receipt, WALLET)

        self.assertEqual(result.token_in.raw_value, 2)
        self.assertEqual(result.token_out.raw_value, 1)
        self.assertEqual(len(result.all_transfers), 4)

    def test_single_transfer_is_not_a_trade(self) -> None:
        receipt = _receipt(_transfer(TOKEN_B, OTHER, WALLET, 10**6))

        result = self.classifier.classify(_tx(), receipt, WALLET)

        self.assertIsInstance(result, NoTrade)
        self.assertEqual(result.kind, AnalysisType.NONE)

    def test_no_logs_is_not_a_trade(self) -> None:
        tx = _tx(to=OTHER, value_wei=10**18)

        self.assertIsInstance(self.classifier.classify(tx, _receipt(), WALLET), NoTrade)

    def test_received_only_is_buy_paid_with_tx_value(self) -> None:
        receipt = _receipt(
            _transfer(TOKEN_A, ROUTER, OTHER, 10**17),
            _transfer(TOKEN_B, OTHER, WALLET, 42 * 10**6),
        )

        result = self.classifier.classify(_tx(value_wei=5 * 10**16), receipt, WALLET)

        self.assertIsInstance(result, BuyResult)
        self.assertEqual(result.token_bought.token_symbol, "USDC")
        self.assertEqual(result.token_bought.scaled_value, "42.0")
        self.assertEqual(result.eth_spent, "0.05")

    def test_sent_only_is_sell(self) -> None:
        receipt = _receipt(
            _transfer(TOKEN_B, WALLET, ROUTER, 7 * 10**6),
            _transfer(TOKEN_A, ROUTER, OTHER, 10**18),
        )

        result = self.classifier.classify(_tx(), receipt, WALLET)

        self.assertIsInstance(result, SellResult)
        self.assertEqual(result.token_sold.token_symbol, "USDC")
        self.assertEqual(result.eth_received, "0.0")

    def test_wallet_not_involved_is_not_a_trade(self) -> None:
        receipt = _receipt(
            _transfer(TOKEN_A, OTHER, ROUTER, 1),
            _transfer(TOKEN_B, ROUTER, OTHER, 1),
        )

        self.assertIsInstance(self.classifier.classify(_tx(), receipt, WALLET), NoTrade)

    def test_wallet_match_ignores_case(self) -> None:
        receipt = _receipt(
            _transfer(TOKEN_A, WALLET, ROUTER, 1),
            _transfer(TOKEN_B, ROUTER, WALLET, 1),
        )

        result = self.classifier.classify(_tx(), receipt, WALLET.upper().replace("0X", "0x"))

        self.assertIsInstance(result, SwapResult)

    def test_same_token_round_trip_is_still_swap(self) -> None:
        receipt = _receipt(
            _transfer(TOKEN_A, WALLET, ROUTER, 10**18),
            _transfer(TOKEN_A, ROUTER, WALLET, 10**18),
        )

        result = self.classifier.classify(_tx(), receipt, WALLET)

        self.assertIsInstance(result, SwapResult)
        self.assertEqual(result.token_in.token_address, result.token_out.token_address)

    def test_zero_amounts_do_not_change_category(self) -> None:
        receipt = _receipt(
            _transfer(TOKEN_A, WALLET, ROUTER, 0),
            _transfer(TOKEN_B, ROUTER, WALLET, 0),
        )

        self.assertIsInstance(self.classifier.classify(_tx(), receipt, WALLET), SwapResult)

    def test_unknown_destination_gets_generic_dex(self) -> None:
        receipt = _receipt(
            _transfer(TOKEN_A, WALLET, OTHER, 1),
            _transfer(TOKEN_B, OTHER, WALLET, 1),
        )

        self.assertEqual(self.classifier.classify(_tx(to=OTHER), receipt, WALLET).dex, "Unknown DEX")
        self.assertEqual(self.classifier.classify(_tx(to=None), receipt, WALLET).dex, "Unknown DEX")


class ResolveDexNameTests(unittest.TestCase):
    def test_lookup_is_case_insensitive(self) -> None:
        self.assertEqual(resolve_dex_name(ROUTER.upper().replace("0X", "0x")), "Uniswap V3 Router")

    def test_custom_table(self) -> None:
        self.assertEqual(resolve_dex_name(OTHER, {OTHER: "Local Pool"}), "Local Pool")
        self.assertEqual(resolve_dex_name("", {OTHER: "Local Pool"}), "Unknown DEX")


if __name__ == "__main__":
    unittest.main()
