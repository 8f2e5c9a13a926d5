"""
Browser page for checking and giving likes.

Rendered server-side with the deployment's contract/chain baked in. The inline
script talks to the injected wallet (window.ethereum) directly: reads go
through this service's GET endpoint, writes go through the wallet's own
eth_sendTransaction, so the page never uses the POST transaction builder.
"""

from __future__ import annotations

import html
import json

from wallet_reputation.config import Deployment

_STYLE = """
body { margin: 0; min-height: 100vh; background: #111827; color: #fff; font-family: Inter, system-ui, sans-serif; }
main { max-width: 42rem; margin: 0 auto; padding: 2rem 1rem; }
header { display: flex; align-items: center; justify-content: space-between; margin-bottom: 2rem; }
h1 { font-size: 2.25rem; margin: 0; }
button { padding: .5rem 1rem; font-weight: 700; color: #fff; border: 0; border-radius: .5rem; cursor: pointer; }
button:disabled { background: #6b7280; cursor: not-allowed; }
.connect { background: #2563eb; } .disconnect { background: #dc2626; } .check { background: #4b5563; } .like { background: #16a34a; margin-top: 1rem; }
.panel { padding: 1.5rem; background: #1f2937; border: 1px solid #374151; border-radius: .5rem; }
.warning { padding: 1rem; margin-bottom: 1rem; color: #fef08a; background: #854d0e; border-radius: .375rem; }
.row { display: flex; gap: .5rem; } input { flex-grow: 1; padding: .5rem .75rem; color: #fff; background: #374151; border: 1px solid #4b5563; border-radius: .5rem; }
.result { margin-top: 1.5rem; padding: 1.5rem; text-align: center; background: #111827; border-radius: .5rem; }
.count { font-size: 2.25rem; font-weight: 700; margin: .5rem 0; }
.muted { color: #9ca3af; } .ok { color: #4ade80; } .err { color: #f87171; } [hidden] { display: none !important; }
"""

_SCRIPT = r"""
const cfg = JSON.parse(document.getElementById("like-config").textContent);
const eth = window.ethereum;
const $ = (id) => document.getElementById(id);
let account = null, chainId = null, queried = null, pollTimer = null;

const isAddress = (v) => /^0x[0-9a-fA-F]{40}$/.test(v);
const short = (a) => `${a.slice(0, 6)}...${a.slice(-4)}`;
const errText = (e) => (e && (e.shortMessage || e.message)) || String(e);

function render() {
  $("connect").hidden = !!account;
  $("connect").disabled = !eth;
  $("connect").textContent = eth ? "Connect Wallet" : "Wallet Not Found";
  $("account").hidden = !account;
  if (account) $("account-label").textContent = `Connected: ${short(account)}`;
  const onChain = account && chainId === cfg.chainId;
  $("wrong-chain").hidden = !account || onChain;
  $("like-panel").hidden = !onChain;
  $("like").hidden = !(queried && account && queried.toLowerCase() !== account.toLowerCase());
}

function showError(e) { $("error").hidden = false; $("error").textContent = `Error: ${errText(e)}`; }
function clearStatus() { $("error").hidden = true; $("status").hidden = true; }

async function syncWallet() {
  if (!eth) return render();
  const accounts = await eth.request({ method: "eth_accounts" });
  account = accounts[0] || null;
  chainId = parseInt(await eth.request({ method: "eth_chainId" }), 16);
  render();
}

async function connect() {
  clearStatus();
  try {
    await eth.request({ method: "eth_requestAccounts" });
    await syncWallet();
  } catch (e) { showError(e); }
}

async function switchChain() {
  try {
    await eth.request({ method: "wallet_switchEthereumChain", params: [{ chainId: "0x" + cfg.chainId.toString(16) }] });
  } catch (e) { showError(e); }
}

async function fetchCount(address) {
  $("loading").hidden = false;
  try {
    const resp = await fetch(`${cfg.apiPath}?address=${encodeURIComponent(address)}`);
    const body = await resp.json();
    if (!resp.ok) throw new Error(body.error || resp.statusText);
    $("count").textContent = body.reputation;
    $("result").hidden = false;
  } finally {
    $("loading").hidden = true;
  }
}

async function checkLikes() {
  clearStatus();
  const address = $("creator").value.trim();
  if (!isAddress(address)) { alert("Please enter a valid Ethereum address."); return; }
  queried = null;
  $("result").hidden = true;
  render();
  try {
    await fetchCount(address);
    queried = address;
    render();
  } catch (e) { showError(e); }
}

function likeCalldata(target) {
  return cfg.likeSelector + target.slice(2).toLowerCase().padStart(64, "0");
}

async function waitForReceipt(hash) {
  return new Promise((resolve, reject) => {
    pollTimer = setInterval(async () => {
      try {
        const receipt = await eth.request({ method: "eth_getTransactionReceipt", params: [hash] });
        if (receipt) { clearInterval(pollTimer); resolve(receipt); }
      } catch (e) { clearInterval(pollTimer); reject(e); }
    }, 2000);
  });
}

async function giveLike() {
  clearStatus();
  const btn = $("like");
  btn.disabled = true;
  btn.textContent = "Confirming...";
  try {
    const hash = await eth.request({
      method: "eth_sendTransaction",
      params: [{ from: account, to: cfg.contractAddress, data: likeCalldata(queried) }],
    });
    btn.textContent = "Liking...";
    const receipt = await waitForReceipt(hash);
    if (receipt.status !== "0x1") throw new Error(`transaction ${hash} reverted`);
    const link = $("tx-link");
    link.href = `${cfg.explorerUrl}/tx/${hash}`;
    link.textContent = `${hash.slice(0, 10)}...`;
    $("status").hidden = false;
    await fetchCount(queried);
  } catch (e) {
    showError(e);
  } finally {
    btn.disabled = false;
    btn.textContent = "Give a Like";
  }
}

$("connect").addEventListener("click", connect);
$("disconnect").addEventListener("click", () => { account = null; queried = null; $("result").hidden = true; render(); });
$("switch-chain").addEventListener("click", switchChain);
$("check").addEventListener("click", checkLikes);
$("like").addEventListener("click", giveLike);
if (eth) {
  eth.on("accountsChanged", syncWallet);
  eth.on("chainChanged", syncWallet);
}
syncWallet();
"""


def page_config(deployment: Deployment, like_selector: str) -> dict:
    return {
        "apiPath": deployment.api_path,
        "contractAddress": deployment.contract_address,
        "chainId": deployment.chain_id,
        "chainName": deployment.chain_name,
        "explorerUrl": deployment.explorer_url.rstrip("/"),
        "likeSelector": like_selector,
    }


def render_page(deployment: Deployment, like_selector: str) -> str:
    # "</" would end the script element early
    config_json = json.dumps(page_config(deployment, like_selector)).replace("</", "<\\/")
    chain_name = html.escape(deployment.chain_name)
    parts = [
        "<!DOCTYPE html>",
        '<html lang="en">',
        "<head>",
        '<meta charset="utf-8">',
        '<meta name="viewport" content="width=device-width, initial-scale=1">',
        "<title>Wallet Reputation</title>",
        '<meta name="description" content="A decentralized Wallet Reputation">',
        f"<style>{_STYLE}</style>",
        "</head>",
        "<body>",
        "<main>",
        "<header>",
        "<h1>PermanentLike</h1>",
        '<div style="text-align:right">',
        '<button id="connect" class="connect">Connect Wallet</button>',
        '<div id="account" hidden><p id="account-label" class="muted"></p>'
        '<button id="disconnect" class="disconnect">Disconnect</button></div>',
        "</div>",
        "</header>",
        f'<div id="wrong-chain" class="warning" hidden><strong>Warning:</strong> Please switch your wallet to the '
        f'{chain_name} network to interact with the contract. <button id="switch-chain" class="check">Switch</button></div>',
        '<section id="like-panel" class="panel" hidden>',
        "<h2>Check or Give a Like</h2>",
        '<label for="creator" class="muted">Creator&apos;s Wallet Address</label>',
        '<div class="row"><input id="creator" placeholder="0x..."><button id="check" class="check">Check Likes</button></div>',
        '<p id="loading" class="muted" hidden>Fetching likes...</p>',
        '<div id="result" class="result" hidden>',
        '<p class="muted">Likes Received:</p>',
        '<p id="count" class="count"></p>',
        '<button id="like" class="like" hidden>Give a Like</button>',
        "</div>",
        '<p id="status" class="ok" hidden>Like successful! Transaction Hash: '
        '<a id="tx-link" target="_blank" rel="noopener noreferrer"></a></p>',
        '<p id="error" class="err" hidden></p>',
        "</section>",
        "</main>",
        f'<script id="like-config" type="application/json">{config_json}</script>',
        f"<script>{_SCRIPT}</script>",
        "</body>",
        "</html>",
    ]
    return "\n".join(parts)
