# ============================================================
# Known Names
# 常用的 ENS 名稱範例，供儀表板下拉選單使用
#
# NOTE: ownership changes over time; these are starting points,
# the dashboard always reads the current owner from chain.
# ============================================================

KNOWN_NAMES = {
    "手動輸入名稱 (Manual)": {
        "name": "",
        "kind": "manual",
        "note": "—",
    },

    # ========== .eth second-level names ==========
    "Vitalik Buterin": {
        "name": "vitalik.eth",
        "kind": "2ld",
        "note": "Unwrapped .eth registration [registrar]",
    },
    "ENS DAO": {
        "name": "ens.eth",
        "kind": "2ld",
        "note": "ENS root project name [registrar]",
    },
    "Nick Johnson": {
        "name": "nick.eth",
        "kind": "2ld",
        "note": "ENS founder [registrar]",
    },
    "ENS Public Resolver": {
        "name": "resolver.eth",
        "kind": "2ld",
        "note": "Points at the current public resolver",
    },

    # ========== Subnames ==========
    "ENS DAO Wallet": {
        "name": "wallet.ensdao.eth",
        "kind": "subname",
        "note": "Subname under ensdao.eth [registry / nameWrapper]",
    },
}
