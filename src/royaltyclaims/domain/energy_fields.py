"""Configured energy fields and their payout batches, per deployment."""

from royaltyclaims.config import PRODUCTION_METABOARD_ADMIN
from royaltyclaims.domain.models.registry import ClaimConfig, EnergyField, SftToken

# Relative links resolve against the configured IPFS gateway
IPFS_PREFIX = "/api/ipfs"


def _claim(order_hash: str, cid: str, merkle_root: str) -> ClaimConfig:
    return ClaimConfig(
        order_hash=order_hash,
        csv_link=f"{IPFS_PREFIX}/{cid}",
        expected_merkle_root=merkle_root,
        expected_content_hash=cid,
    )


DEV_ENERGY_FIELDS: list[EnergyField] = [
    EnergyField(
        name="Bakken Horizon Field",
        sft_tokens=[
            SftToken(
                address="0xbcAd416434984Cca2b4a950dCd95f47C4126E980",
                claims=[
                    _claim(
                        "0xdf52f1dbb1f0d0a0d1e839e1a7beddbebccd724633e9a4b8b643290f33dcb770",
                        "bafkreic2d2jzsqnqhrarzd4pqgkfmge6vu32lzhkcpm45fzt6cxnfivmju",
                        "0xe62355892574ae4c105123252df38ff60e427d93c06f7eb373821bb15ca4847a",
                    ),
                ],
            ),
        ],
    ),
    EnergyField(
        name="Gulf of Mexico-4",
        sft_tokens=[
            SftToken(
                address="0xae69a129b626b1e8fce196ef8e7d5faea3be753f",
                claims=[
                    _claim(
                        "0x3ede86a904f26911a1e71f35038142100096832c08f5edb8bf13b0eeda2395ed",
                        "bafkreic2d2jzsqnqhrarzd4pqgkfmge6vu32lzhkcpm45fzt6cxnfivmju",
                        "0xe62355892574ae4c105123252df38ff60e427d93c06f7eb373821bb15ca4847a",
                    ),
                ],
            ),
        ],
    ),
]

PROD_ENERGY_FIELDS: list[EnergyField] = [
    EnergyField(
        name="Wressle-1 4.5% Royalty Stream",
        sft_tokens=[
            SftToken(
                address="0xf836a500910453A397084ADe41321ee20a5AAde1",
                claims=[
                    _claim(
                        "0x93f57975d7ecedcbd89aa74e0663e390c4afc7858d37a0d612a986042ae49ebb",
                        "bafkreigmivteh7rdu2orcascrqje5al52fq2a4yevrp4wjed6mvecqrywm",
                        "0xce5cb11c41c2afae23a5406ffb032e9a2224f7da9dd6fc44a2af9be56f052bd0",
                    ),
                    _claim(
                        "0x51e95739a7cd184166038d09de803ca574cd03a13e60c2f7960459c9ae6684ec",
                        "bafkreibm6mrdbmbowc2qyw3gn3xygzmr3cj75gmmyc7apyxe34wfqzqjru",
                        "0xb7a2297ccccc6dd6bd9960fd3325fadc34a656fc478827eeb06110c0983560a6",
                    ),
                    _claim(
                        "0x3b9902f8f9424e88c3c847ffb7337dc8b9a88fb4a2672d6bbfc8b12372eaebd2",
                        "bafkreidr2twhqtwwjkrcota6jvc2xij3povpz7wc4i5dnel3hl6gga5ohu",
                        "0x0e7e29b1582fe6724b60f59d35066cf35318516aeb0b27b1f2c8b6d5fac6f40b",
                    ),
                    _claim(
                        "0x499f47f332cc4f375e3a34cea0e8e56f51c042b6d5be539c672fde855fab8df1",
                        "bafkreibqzcxpbdkxm6whawbpi47ngiemn77rmbmpswfbabhuogxos3ywbi",
                        "0xbcfc4b9feff0c6eafefb6038585f5e6a581605582369423ca54bbfa22ed3c68d",
                    ),
                ],
            ),
            SftToken(address="0x1d57246fd0ba134d7cc78ddf3ed829379d95f4b7", claims=[]),
        ],
    ),
]


def get_energy_fields(metaboard_admin: str) -> list[EnergyField]:
    """Production registry for the production metaboard admin, development otherwise."""
    if metaboard_admin.lower() == PRODUCTION_METABOARD_ADMIN.lower():
        return PROD_ENERGY_FIELDS
    return DEV_ENERGY_FIELDS
