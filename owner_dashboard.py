# ============================================================
# 🌐 ENS Owner Dashboard
# Registry + NameWrapper + Registrar + Subgraph 比對
# ============================================================

import logging
from datetime import datetime, timezone

import pandas as pd
import streamlit as st

from config import load_settings
from debug_injection import DEBUG_SWITCH
from errors import ClassifiedError, ErrorKind, InfrastructureError
from known_names import KNOWN_NAMES
from resolver_logic import build_resolver

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

NO_FORCED_ERROR = "— (關閉)"

LEVEL_LABELS = {
    "registry": "Registry",
    "registrar": "Registrar (.eth 租約)",
    "nameWrapper": "NameWrapper",
}


# ============================================================
# Helper functions
# ============================================================
def format_address(addr):
    if not addr or len(addr) < 12:
        return addr or "—"
    return f"{addr[:6]}...{addr[-4:]}"


def format_timestamp(ts):
    if not ts:
        return "—"
    return datetime.fromtimestamp(ts, tz=timezone.utc).strftime("%Y-%m-%d %H:%M UTC")


def owner_row(name, owner, error=None):
    """Flatten one lookup into a table row."""
    row = {"名稱": name, "層級": "—", "擁有者": "—", "Registrant": "—", "已過期": "—", "狀態": "✅"}
    if owner is not None:
        data = owner.to_dict()
        row["層級"] = LEVEL_LABELS.get(data["ownershipLevel"], data["ownershipLevel"])
        row["擁有者"] = format_address(data["owner"])
        if "registrant" in data:
            row["Registrant"] = format_address(data["registrant"])
        if "expired" in data:
            row["已過期"] = "是" if data["expired"] else "否"
    else:
        row["狀態"] = "📭 未註冊"
    if error is not None:
        row["狀態"] = f"⚠️ {error.name}"
    return row


@st.cache_resource
def get_resolver():
    return build_resolver(load_settings())


FORCED_ERROR_CHOICES = [NO_FORCED_ERROR] + [k.value for k in ErrorKind]


def forced_error_index():
    current = DEBUG_SWITCH.forced_error()
    return 0 if current is None else FORCED_ERROR_CHOICES.index(current.value)


def apply_forced_error(choice):
    """Write the switch only when the selection moves away from its current value."""
    wanted = None if choice == NO_FORCED_ERROR else ErrorKind.from_name(choice)
    if wanted == DEBUG_SWITCH.forced_error():
        return
    if wanted is None:
        DEBUG_SWITCH.clear()
    else:
        DEBUG_SWITCH.set(wanted)


def render_owner(name, owner):
    if owner is None:
        st.info(f"📭 {name} 尚未註冊（所有合約層皆無紀錄）")
        return
    st.success(f"✅ {name} 的擁有者：{owner.owner}")
    st.json(owner.to_dict())


def render_classified_error(name, err):
    if err.kind == ErrorKind.SUBGRAPH_INDEXING:
        st.warning(f"⏳ Subgraph 索引尚未同步（{err.name}），以下為鏈上資料")
    else:
        st.warning(f"⚠️ 鏈上與 Subgraph 資料不一致（{err.name}）：{err}")
    st.markdown(f"**區塊時間**：{format_timestamp(err.timestamp)}")
    if err.data is not None:
        st.json(err.data.to_dict())
    else:
        st.info(f"📭 鏈上沒有 {name} 的紀錄")


# ============================================================
# Streamlit UI
# ============================================================
def main():
    st.set_page_config(page_title="ENS Owner Dashboard", layout="wide")
    st.title("🌐 ENS 擁有者查詢 — Registry / NameWrapper / Registrar")

    settings = load_settings()
    if not settings.rpc_url:
        st.error("❌ Missing ETH_RPC_URL in .env file")
        st.stop()
        return

    sel = st.selectbox("選擇已知名稱（或選擇 '手動輸入名稱'）", list(KNOWN_NAMES.keys()))
    meta = KNOWN_NAMES[sel]
    if meta["kind"] == "manual":
        name_input = st.text_input("ENS 名稱", "")
    else:
        name_input = st.text_input("ENS 名稱（可編輯）", meta["name"])
        st.markdown(f"**備註**：{meta['note']}")

    # building the resolver applies the ENS_OWNER_DEBUG seed before the selector reads it
    resolver = get_resolver()

    cross_check = st.checkbox("與 Subgraph 索引比對", value=False)
    forced = st.selectbox("Debug：強制錯誤類型", FORCED_ERROR_CHOICES, index=forced_error_index())
    apply_forced_error(forced)

    if st.button("查詢擁有者"):
        name = name_input.strip().lower()
        if not name:
            st.error("請提供有效的 ENS 名稱。")
            st.stop()
            return
        try:
            owner = resolver.resolve_owner(name, skip_index=not cross_check)
        except ClassifiedError as err:
            render_classified_error(name, err)
        except InfrastructureError as err:
            st.error(f"❌ 無法讀取鏈上或索引資料：{err}")
        else:
            render_owner(name, owner)

    st.markdown("### 📊 批次查詢")
    batch = st.text_area("每行一個名稱", "")
    if st.button("開始批次查詢"):
        names = [n.strip().lower() for n in batch.splitlines() if n.strip()]
        if not names:
            st.warning("未輸入任何名稱。")
            return
        try:
            rows = resolver.resolve_many(names, skip_index=not cross_check)
        except InfrastructureError as err:
            st.error(f"❌ 批次查詢失敗：{err}")
            return
        df = pd.DataFrame([owner_row(name, owner, error) for name, owner, error in rows])
        st.dataframe(df)


if __name__ == "__main__":
    main()
