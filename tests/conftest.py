"""Shared test fixtures for Contract Scope."""

from pathlib import Path

import pytest

from contract_scope.config import AnalysisConfig

ANCHOR_PROGRAM = """use anchor_lang::prelude::*;
use anchor_spl::token::{self, Transfer};

declare_id!("Fg6PaFpoGXkYsidMpWTK6W2BeZ7FEfcYkg476zPFsLnS");

#[program]
pub mod vault {
    use super::*;

    // Move tokens into the vault
    pub fn deposit(ctx: Context<Deposit>, amount: u64) -> Result<()> {
        if amount == 0 {
            return err!(VaultError::ZeroAmount);
        }
        let cpi_ctx = CpiContext::new(
            ctx.accounts.token_program.to_account_info(),
            Transfer {
                from: ctx.accounts.user_tokens.to_account_info(),
                to: ctx.accounts.vault_tokens.to_account_info(),
                authority: ctx.accounts.user.to_account_info(),
            },
        );
        token::transfer(cpi_ctx, amount)?;
        let state = &mut ctx.accounts.state;
        state.total = state.total.checked_add(amount).unwrap();
        Ok(())
    }
}

#[derive(Accounts)]
pub struct Deposit<'info> {
    #[account(mut)]
    pub state: Account<'info, VaultState>,
    pub user: Signer<'info>,
}

#[account]
pub struct VaultState {
    pub authority: Pubkey,
    pub total: u64,
}
"""

UNSAFE_ONLY = """unsafe { a }
unsafe { b }
"""


@pytest.fixture
def anchor_program():
    return ANCHOR_PROGRAM


@pytest.fixture
def make_repo(tmp_path):
    """Build a repository tree from {relative path: content}."""

    def _make(files, name="repo"):
        root = tmp_path / name
        root.mkdir()
        for rel, content in files.items():
            path = root / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        return root

    return _make


@pytest.fixture
def anchor_repo(make_repo):
    """A minimal Anchor workspace with one program."""
    return make_repo(
        {
            "Anchor.toml": "[programs.localnet]\nvault = \"Fg6P\"\n",
            "programs/vault/Cargo.toml": '[dependencies]\nanchor-lang = "0.29.0"\n',
            "programs/vault/src/lib.rs": ANCHOR_PROGRAM,
            "programs/vault/src/errors.rs": UNSAFE_ONLY,
        },
        name="vault-repo",
    )


@pytest.fixture
def isolated_config(monkeypatch, tmp_path) -> Path:
    """Run with no global/project config file and no CONTRACT_SCOPE_* env."""
    import os

    home = tmp_path / "home"
    home.mkdir()
    workdir = tmp_path / "cwd"
    workdir.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.chdir(workdir)
    for key in list(os.environ):
        if key.startswith("CONTRACT_SCOPE_"):
            monkeypatch.delenv(key)
    return workdir


@pytest.fixture
def sequential_config():
    return AnalysisConfig(workers=1)
